import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Dict, Any

import filetype

from scholance.database.models import embedded
from scholance.services.exceptions import InvalidInputError, UnrecognizedFileTypeError, ValidationError

logger = logging.getLogger(__name__)

# 'data:image/png;base64,' 와 같은 data URI 접두사
DATA_URI_PREFIX = re.compile(r"^data:[^,]*?;base64,", re.IGNORECASE)


@dataclass
class UploadedFile:
    name: str
    media_type: str
    extension: str
    contents: bytes


class AssetService:
    """요청 데이터로부터 Asset 하위 문서를 만들고, 업로드된 파일 데이터를 해석합니다."""

    def create_asset_from_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        JSON 요청으로부터 Asset 하위 문서를 만듭니다.

        Raises:
            ValidationError: name 또는 mediaType이 없을 때.
        """
        name = request.get("name")
        media_type = request.get("mediaType")
        if not name or not media_type:
            logger.info("Invalid asset input: %s", {k: request.get(k) for k in ("name", "mediaType")})
            raise ValidationError("Invalid asset input")
        return embedded.new_asset(name, media_type, uri=request.get("uri"), text=request.get("text"))

    def get_file_from_request(self, request: Dict[str, Any]) -> UploadedFile:
        """
        파일 업로드 요청({name, file})에서 파일 데이터를 꺼냅니다.

        data URI 접두사를 제거하고 base64를 디코딩한 뒤, 클라이언트가 보낸 MIME 타입이 아니라
        파일 시그니처 바이트로 실제 형식을 판별합니다.

        Returns:
            이름, 미디어 타입(image, video, application 등 최상위 MIME), 확장자, 바이트 내용.

        Raises:
            InvalidInputError: name이나 file이 없거나, base64로 디코딩할 수 없을 때.
            UnrecognizedFileTypeError: 파일 시그니처로 형식을 판별할 수 없을 때.
        """
        name = request.get("name")
        data = request.get("file")
        if not name or not data or not isinstance(data, str):
            raise InvalidInputError("Invalid input")

        base64_string = DATA_URI_PREFIX.sub("", data.strip(), count=1)
        if not base64_string:
            raise InvalidInputError("Invalid file data")
        try:
            contents = base64.b64decode(base64_string, validate=True)
        except (binascii.Error, ValueError):
            raise InvalidInputError("Invalid file data")

        kind = filetype.guess(contents)
        if kind is None:
            raise UnrecognizedFileTypeError("The string supplied is not a file type")

        return UploadedFile(
            name=name,
            media_type=kind.mime.split("/")[0],
            extension=kind.extension,
            contents=contents,
        )
