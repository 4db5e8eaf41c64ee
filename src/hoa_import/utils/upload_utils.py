"""
JSON upload transport: files carried inline as base64, optionally gzipped.

Payload shape::

    {"files": [{"name": "HOA1/lok.txt", "content": "<base64>", "encoding": "gzip"}]}

``encoding`` is optional; when absent the decoded bytes are the file itself.
"""
import base64
import gzip
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from hoa_import.models.import_result import UploadedFile

logger = logging.getLogger(__name__)

SUPPORTED_ENCODINGS = ('gzip',)


class UploadedFilePayload(BaseModel):
    name: str = Field(min_length=1)
    content: str
    encoding: Optional[str] = None


class UploadPayload(BaseModel):
    files: List[UploadedFilePayload]


def decode_file_payload(payload: UploadedFilePayload) -> UploadedFile:
    """
    Decode one inline file.

    Raises:
        ValueError: for invalid base64, unknown encodings or corrupt gzip data
    """
    try:
        raw = base64.b64decode(payload.content, validate=True)
    except ValueError as e:
        raise ValueError(f"File {payload.name} is not valid base64: {str(e)}")

    if payload.encoding is None:
        return UploadedFile(name=payload.name, content=raw)
    if payload.encoding not in SUPPORTED_ENCODINGS:
        raise ValueError(f"Unsupported encoding for {payload.name}: {payload.encoding}")
    try:
        return UploadedFile(name=payload.name, content=gzip.decompress(raw))
    except (OSError, EOFError) as e:
        raise ValueError(f"File {payload.name} is not valid gzip data: {str(e)}")


def parse_upload_payload(body: Dict[str, Any]) -> List[UploadedFile]:
    """
    Turn a JSON upload body into uploaded files.

    Raises:
        pydantic.ValidationError: if the body does not have the payload shape
        ValueError: if a file cannot be decoded
    """
    payload = UploadPayload.model_validate(body)
    files = [decode_file_payload(item) for item in payload.files]
    logger.debug(f"Decoded {len(files)} inline files")
    return files
