import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from scholance.config import Config
from scholance.services.exceptions import StorageError

logger = logging.getLogger(__name__)


def build_s3_client():
    """설정값으로 boto3 S3 클라이언트를 생성합니다."""
    return boto3.client(
        "s3",
        region_name=Config.S3_REGION,
        endpoint_url=Config.S3_ENDPOINT_URL,
    )


class StorageService:
    def __init__(self, client=None, public_base_url: str = None):
        """
        StorageService를 초기화합니다.

        Args:
            client: boto3 S3 클라이언트. 주어지지 않으면 첫 사용 시점에 생성합니다.
            public_base_url: 업로드된 파일 URI의 기준 주소.
        """
        self._client = client
        self.public_base_url = (public_base_url or Config.S3_ENDPOINT_URL or "https://s3.amazonaws.com").rstrip("/")

    @property
    def client(self):
        if self._client is None:
            self._client = build_s3_client()
        return self._client

    def create_folder(self, bucket: str, path: str) -> str:
        """
        파일을 업로드할 폴더(프리픽스)를 미리 만들어 둡니다. S3에서는 '<path>/' 키의 빈 객체입니다.

        Returns:
            생성된 폴더 키.

        Raises:
            StorageError: S3 요청이 실패했을 때.
        """
        key = path.strip("/") + "/"
        self._put_object(Bucket=bucket, Key=key)
        return key

    def delete_folder(self, bucket: str, path: str) -> bool:
        """create_folder로 만든 폴더 표시 객체를 삭제합니다."""
        self._delete_object(Bucket=bucket, Key=path.strip("/") + "/")
        return True

    def upload_file(self, bucket: str, path: str, name: str, extension: str, contents: bytes) -> str:
        """
        파일을 '<path>/<name>.<extension>' 키로 업로드하고 공개 URI를 반환합니다.
        이름의 공백은 '_'로 바꿉니다.

        Raises:
            StorageError: S3 요청이 실패했을 때.
        """
        key = f"{path.strip('/')}/{name.replace(' ', '_')}.{extension}"
        logger.info("Uploading file to s3://%s/%s", bucket, key)
        self._put_object(ACL="public-read", Bucket=bucket, Key=key, Body=contents)
        return f"{self.public_base_url}/{bucket}/{key}"

    def delete_file(self, bucket: str, uri: str) -> bool:
        """
        업로드했던 파일을 URI(또는 키)로 삭제합니다.

        Raises:
            StorageError: S3 요청이 실패했을 때.
        """
        self._delete_object(Bucket=bucket, Key=self.key_from_uri(bucket, uri))
        return True

    def key_from_uri(self, bucket: str, uri: str) -> str:
        prefix = f"{self.public_base_url}/{bucket}/"
        if uri and uri.startswith(prefix):
            return uri[len(prefix):]
        return uri

    def _put_object(self, **params):
        try:
            self.client.put_object(**params)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 put_object failed for %s/%s: %s", params.get("Bucket"), params.get("Key"), e)
            raise StorageError("There was an error writing to object storage") from e

    def _delete_object(self, **params):
        try:
            self.client.delete_object(**params)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete_object failed for %s/%s: %s", params.get("Bucket"), params.get("Key"), e)
            raise StorageError("There was an error deleting from object storage") from e
