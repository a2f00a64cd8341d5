import logging
import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from app.core.config import settings
from app.core.errors import StorageError
from app.platform.ports.object_storage import ObjectStoragePort

logger = logging.getLogger(__name__)

class S3Storage(ObjectStoragePort):
    """S3 or MinIO bucket. Client failures surface as StorageError (502)."""

    def __init__(self, client=None, bucket: str | None = None):
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=settings.S3_ACCESS_KEY,
                aws_secret_access_key=settings.S3_SECRET_KEY,
                region_name=settings.S3_REGION,
            )
            client = session.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL,
                config=Config(signature_version="s3v4"),
            )
        self.s3 = client
        self.bucket = bucket or settings.S3_BUCKET

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self.s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 upload of {key} failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 delete of {key} failed: {e}") from e
        logger.debug("deleted s3://%s/%s", self.bucket, key)

    def presign_download(self, key: str, expires_seconds: int = 900) -> str:
        return self.s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_seconds,
        )
