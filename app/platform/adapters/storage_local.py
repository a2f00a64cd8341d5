import logging
from pathlib import Path
from app.core.config import settings
from app.core.errors import StorageError
from app.platform.ports.object_storage import ObjectStoragePort

logger = logging.getLogger(__name__)

class LocalFilesystemStorage(ObjectStoragePort):
    """Blobs under a directory on disk; keys are relative paths like `audio-assets/<user>/<file>`."""

    def __init__(self, root: str | None = None):
        self.root = Path(root or settings.LOCAL_STORAGE_ROOT).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key.strip("/")).resolve()
        if self.root not in path.parents:
            raise StorageError(f"Storage key escapes the media root: {key}", field="storage_path")
        return path

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
        else:
            logger.debug("delete of missing blob %s ignored", key)

    def presign_download(self, key: str, expires_seconds: int = 900) -> str:
        # local files never expire; serve them through nginx or a static mount
        return self._path(key).as_uri()
