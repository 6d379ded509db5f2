"""S3 object storage for uploaded videos."""
import logging
from functools import lru_cache
from typing import Any, BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Depends

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    pass


@lru_cache
def _build_s3_client(region: str, endpoint_url: str) -> Any:
    return boto3.client(
        "s3",
        region_name=region,
        endpoint_url=endpoint_url or None,
    )


def get_s3_client(settings: Settings = Depends(get_settings)) -> Any:
    """FastAPI dependency: one boto3 S3 client per (region, endpoint)."""
    return _build_s3_client(settings.s3_region, settings.s3_endpoint_url)


def put_object(client: Any, bucket: str, key: str, body: BinaryIO, content_type: str) -> None:
    try:
        client.put_object(Bucket=bucket, Key=key, Body=body, ContentType=content_type)
    except (BotoCoreError, ClientError) as e:
        logger.error("put_object s3://%s/%s failed: %s", bucket, key, e)
        raise StorageError(str(e)) from e
    logger.info("Stored s3://%s/%s (%s)", bucket, key, content_type)


def object_url(bucket: str, region: str, key: str) -> str:
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"
