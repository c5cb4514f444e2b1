"""
S3Client - S3/MinIO operations for storing and serving original images.
"""

import logging
import os
from typing import Iterator, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from .config import S3Config
from .errors import StorageIOError


class S3Client:
    """
    Wrapper for S3/MinIO operations.

    Keys passed to the public methods are bare filenames; the configured
    prefix is added here.
    """

    CHUNK_SIZE = 64 * 1024

    def __init__(self, config: S3Config, logger: Optional[logging.Logger] = None):
        """
        Initialize S3 client.

        Args:
            config: S3 configuration
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self._client = boto3.client(
            's3',
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}
            ),
            verify=config.verify_ssl
        )

    @property
    def client(self):
        """Return the underlying boto3 client."""
        return self._client

    def key_for(self, name: str) -> str:
        """Return the full object key for a filename."""
        name = os.path.basename(name)
        if self.config.prefix:
            return f"{self.config.prefix.strip('/')}/{name}"
        return name

    @staticmethod
    def is_missing(e: ClientError) -> bool:
        return e.response['Error']['Code'] in ('404', 'NoSuchKey', 'NotFound')

    def object_exists(self, name: str) -> bool:
        """Check if an object exists in S3."""
        try:
            self._client.head_object(Bucket=self.config.bucket, Key=self.key_for(name))
            return True
        except ClientError as e:
            if self.is_missing(e):
                return False
            raise

    def get_object_metadata(self, name: str) -> Optional[dict]:
        """Get metadata for an S3 object."""
        try:
            response = self._client.head_object(Bucket=self.config.bucket, Key=self.key_for(name))
            return {
                'size': response['ContentLength'],
                'last_modified': response['LastModified'].isoformat(),
                'content_type': response.get('ContentType', 'application/octet-stream'),
            }
        except ClientError as e:
            if self.is_missing(e):
                return None
            raise

    def download_object(self, name: str) -> bytes:
        """Download an object from S3."""
        response = self._client.get_object(Bucket=self.config.bucket, Key=self.key_for(name))
        return response['Body'].read()

    def upload_object(
        self,
        name: str,
        data: bytes,
        content_type: str = 'application/octet-stream'
    ) -> str:
        """
        Upload an object to S3.

        Returns:
            The full object key

        Raises:
            StorageIOError: If the bucket rejects the write
        """
        key = self.key_for(name)
        try:
            self._client.put_object(
                Bucket=self.config.bucket,
                Key=key,
                Body=data,
                ContentType=content_type
            )
        except ClientError as e:
            self.logger.error(f"Upload of {key} failed: {e}")
            raise StorageIOError(f"Failed to upload {key}: {e}") from e
        return key

    def delete_object(self, name: str) -> bool:
        """
        Delete an object.

        Returns:
            True if the object existed, False if it was already gone
        """
        key = self.key_for(name)
        try:
            if not self.object_exists(name):
                return False
            self._client.delete_object(Bucket=self.config.bucket, Key=key)
        except ClientError as e:
            self.logger.error(f"Delete of {key} failed: {e}")
            raise StorageIOError(f"Failed to delete {key}: {e}") from e
        return True

    def open_stream(self, name: str) -> Tuple[Iterator[bytes], dict]:
        """
        Open an object for streaming.

        Returns:
            Tuple of (chunk iterator, metadata dict with size and content_type)
        """
        key = self.key_for(name)
        response = self._client.get_object(Bucket=self.config.bucket, Key=key)
        metadata = {
            'size': response['ContentLength'],
            'content_type': response.get('ContentType', 'application/octet-stream'),
        }
        return self._iter_body(response['Body']), metadata

    def _iter_body(self, body) -> Iterator[bytes]:
        try:
            for chunk in iter(lambda: body.read(self.CHUNK_SIZE), b''):
                yield chunk
        finally:
            body.close()
