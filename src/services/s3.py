"""
S3 operations utilities for Lambda handlers.

This module provides reusable functions for reading diploma assets and
templates from Amazon S3.
"""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Configure S3 client with timeouts to prevent infinite hangs
s3_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,  # 10 seconds to establish connection
    read_timeout=60      # 60 seconds max for reading response
)

# Initialize S3 client at module level (thread-safe, reused across invocations)
s3_client = boto3.client('s3', config=s3_config)
logger.info("S3 client initialized with timeouts: connect=10s, read=60s, max_attempts=1")


def fetch_object(bucket: str, key: str) -> bytes:
    """
    Fetch raw object content from S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key

    Returns:
        bytes: The object content

    Raises:
        ValueError: If the bucket or key does not exist, or parameters are empty
        ClientError: For other S3 errors

    Example:
        >>> font_bytes = fetch_object(
        ...     bucket="wcu-diploma-assets",
        ...     key="assets/fonts/Chomsky.ttf"
        ... )
        >>> print(len(font_bytes))
        34120
    """
    if not bucket:
        raise ValueError("S3 bucket name cannot be empty")
    if not key:
        raise ValueError("S3 object key cannot be empty")

    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        return response['Body'].read()
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        if error_code == 'NoSuchKey':
            logger.error(f"S3 object not found: s3://{bucket}/{key}")
            raise ValueError(f"Object not found in S3: {key}")
        elif error_code == 'NoSuchBucket':
            logger.error(f"S3 bucket not found: {bucket}")
            raise ValueError(f"S3 bucket not found: {bucket}")
        else:
            logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
            raise
