# core/s3_client.py

from typing import Optional, Tuple

import boto3
from botocore.exceptions import ClientError
from botocore.response import StreamingBody

from core.config import Settings
from core.errors import AppError, NotFoundError, ValidationError
from core.logging_config import logger


def get_s3(settings: Settings) -> Tuple[object, str]:
    """
    Get an S3 client for the Cloudflare R2 bucket, plus the bucket name.
    Raises RuntimeError if R2 credentials are missing.
    """
    endpoint = settings.R2_ENDPOINT
    key = settings.R2_ACCESS_KEY_ID
    secret = settings.R2_SECRET_ACCESS_KEY
    bucket = settings.R2_BUCKET_NAME

    if not all([endpoint, key, secret, bucket]):
        raise RuntimeError("Missing R2 environment variables")

    client = boto3.client(
        "s3",
        endpoint_url=endpoint,
        aws_access_key_id=key,
        aws_secret_access_key=secret,
        region_name="auto",
    )

    return client, bucket


def _is_missing(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code")
    return code in ("NoSuchKey", "404", "NotFound")


class ObjectStorage:
    """
    Thin wrapper over the S3 API: put / get / delete / presigned URLs.
    The client is created lazily so the app starts without R2 configured.
    """

    def __init__(self, settings: Settings, client=None, bucket: Optional[str] = None):
        self._settings = settings
        self._client = client
        self._bucket = bucket
        self.expiry_seconds = settings.PRESIGNED_URL_EXPIRY_SECONDS

    def _s3(self) -> Tuple[object, str]:
        if self._client is None:
            self._client, self._bucket = get_s3(self._settings)
        return self._client, self._bucket

    def put(self, key: str, body: bytes, content_type: Optional[str] = None):
        s3, bucket = self._s3()
        extra = {"ContentType": content_type} if content_type else {}
        try:
            s3.put_object(Bucket=bucket, Key=key, Body=body, **extra)
        except ClientError as e:
            logger.error(f"R2 upload failed for {key}: {e}")
            raise AppError("File upload failed")

    def get(self, key: str) -> Tuple[StreamingBody, Optional[str]]:
        """
        Returns (body, content_type) without reading the object; iterate
        body.iter_chunks() to stream it. NotFoundError when the key is absent.
        """
        s3, bucket = self._s3()
        try:
            obj = s3.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _is_missing(e):
                raise NotFoundError("File not found.")
            logger.error(f"R2 download failed for {key}: {e}")
            raise AppError("File download failed")

        body = obj.get("Body")
        if body is None:
            raise NotFoundError("File not found.")
        return body, obj.get("ContentType")

    def delete(self, key: str):
        s3, bucket = self._s3()
        s3.delete_object(Bucket=bucket, Key=key)

    def presigned_url(self, key: str, action: str = "upload", content_type: Optional[str] = None) -> str:
        """
        Presigned URL for direct client upload (put_object) or
        download (get_object). Expires after PRESIGNED_URL_EXPIRY_SECONDS.
        """
        s3, bucket = self._s3()
        params = {"Bucket": bucket, "Key": key}

        if action == "download":
            method = "get_object"
        else:
            if not content_type:
                raise ValidationError("Content type is required for uploads.")
            method = "put_object"
            params["ContentType"] = content_type

        return s3.generate_presigned_url(
            method,
            Params=params,
            ExpiresIn=self.expiry_seconds,
        )
