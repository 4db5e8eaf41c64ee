"""
Lambda entry point for batch imports of legacy HOA exports.

The event body either carries the files inline::

    {"files": [{"name": "HOA1/lok.txt", "content": "<base64>", "encoding": "gzip"}], "cleanImport": false}

or points at an uploaded batch in S3::

    {"prefix": "imports/2025-01", "bucket": "optional-bucket-name"}
"""
import asyncio
import logging
from typing import Any, Dict, List

from hoa_import.models.import_result import BatchImportResult, UploadedFile
from hoa_import.services.batch_import_service import BatchImportService
from hoa_import.utils.db.sqlalchemy_store import SqlAlchemyImportStore
from hoa_import.utils.handler_decorators import standard_error_handling
from hoa_import.utils.import_config import ImportConfig
from hoa_import.utils.lambda_utils import parse_event_body
from hoa_import.utils.logging_config import configure_logging
from hoa_import.utils.s3_dao import list_upload_files
from hoa_import.utils.upload_utils import parse_upload_payload

logger = logging.getLogger(__name__)


def load_uploaded_files(body: Dict[str, Any], config: ImportConfig) -> List[UploadedFile]:
    """Resolve the request body into uploaded files using the matching transport."""
    if 'files' in body:
        return parse_upload_payload(body)
    prefix = body.get('prefix')
    if prefix:
        return list_upload_files(prefix, bucket=body.get('bucket') or config.import_bucket,
                                 region_name=config.aws_region)
    raise ValueError("Request must contain 'files' or an S3 'prefix'")


async def run_batch_import(files: List[UploadedFile], config: ImportConfig, clean_import: bool = False,
                           create_schema: bool = False) -> BatchImportResult:
    """Run one batch against a freshly created store, disposing of its engine afterwards."""
    store = SqlAlchemyImportStore.from_config(config)
    try:
        if create_schema:
            await store.create_schema()
        return await BatchImportService(store, config).process_batch_import(files, clean_import=clean_import)
    finally:
        await store.dispose()


@standard_error_handling
def batch_import_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    config = ImportConfig.from_environment()
    body = parse_event_body(event)
    files = load_uploaded_files(body, config)
    if not files:
        raise ValueError("No files to import")

    logger.info(f"Received {len(files)} files for import")
    result = asyncio.run(run_batch_import(
        files,
        config,
        clean_import=bool(body.get('cleanImport', False)),
        create_schema=bool(body.get('createSchema', False)),
    ))
    return result.to_response_body()


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Main Lambda handler for import operations."""
    configure_logging()
    return batch_import_handler(event, context)
