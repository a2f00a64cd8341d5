# Services raise these; app.main maps each to a JSON response using its status_code.

class AnnotationError(Exception):
    code = "annotation_error"
    status_code = 400

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "field": self.field}


class ValidationError(AnnotationError):
    code = "validation_error"
    status_code = 422


class LabelAssetMismatch(ValidationError):
    code = "label_asset_mismatch"


class ConstraintViolation(AnnotationError):
    code = "constraint_violation"
    status_code = 409


class InvalidRangeError(ConstraintViolation):
    code = "invalid_range"
    status_code = 422


class DuplicateLabelName(ConstraintViolation):
    code = "duplicate_label_name"


class DuplicateStoredFilename(ConstraintViolation):
    code = "duplicate_stored_filename"


class InvalidTransitionError(ConstraintViolation):
    code = "invalid_transition"


class NotFoundError(AnnotationError):
    code = "not_found"
    status_code = 404


class AuthorizationError(AnnotationError):
    code = "forbidden"
    status_code = 403


class StorageError(AnnotationError):
    code = "storage_error"
    status_code = 502
