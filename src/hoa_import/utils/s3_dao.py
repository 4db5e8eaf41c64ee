"""
S3 Data Access Object for reading uploaded export files.
"""
import logging
import os
from typing import List, Optional

import boto3
from botocore.exceptions import ClientError

from hoa_import.models.import_result import UploadedFile

logger = logging.getLogger(__name__)

def get_s3_client(region_name: Optional[str] = None):
    return boto3.client('s3', region_name=region_name or os.environ.get('AWS_REGION', 'eu-central-1'))


def get_object_content(key: str, bucket: str, client=None) -> Optional[bytes]:
    """
    Get the content of an S3 object.

    Args:
        key: The S3 key of the object
        bucket: Bucket holding the object
        client: Optional S3 client to reuse

    Returns:
        The object content as bytes if successful, None otherwise
    """
    try:
        response = (client or get_s3_client()).get_object(Bucket=bucket, Key=key)
        return response['Body'].read()
    except ClientError as e:
        logger.error(f"Error reading object content from S3: {str(e)}", extra={'key': key})
        return None


def upload_name_for_key(key: str, prefix: str) -> str:
    """Strip the batch prefix so ``{prefix}/{hoa}/{file}`` becomes ``{hoa}/{file}``."""
    prefix = prefix.strip('/')
    if prefix and key.startswith(prefix + '/'):
        return key[len(prefix) + 1:]
    return key


def list_upload_files(prefix: str, bucket: str, region_name: Optional[str] = None) -> List[UploadedFile]:
    """
    Load every object under a batch prefix as an uploaded file.

    Args:
        prefix: Key prefix of the batch, e.g. ``imports/2025-01``
        bucket: Upload bucket, normally ``ImportConfig.import_bucket``
        region_name: Optional AWS region of the bucket

    Returns:
        Uploaded files named relative to the prefix, in key order

    Raises:
        ValueError: if an object under the prefix cannot be read
    """
    client = get_s3_client(region_name)
    list_prefix = prefix.strip('/') + '/' if prefix.strip('/') else ''

    files: List[UploadedFile] = []
    paginator = client.get_paginator('list_objects_v2')
    for page in paginator.paginate(Bucket=bucket, Prefix=list_prefix):
        for item in page.get('Contents', []):
            key = item['Key']
            if key.endswith('/'):
                continue
            content = get_object_content(key, bucket, client)
            if content is None:
                raise ValueError(f"Could not read uploaded file s3://{bucket}/{key}")
            files.append(UploadedFile(name=upload_name_for_key(key, prefix), content=content))

    logger.info(f"Loaded {len(files)} uploaded files from s3://{bucket}/{list_prefix}")
    return files
