"""Connection settings for the test S3 and SFTP servers."""

from __future__ import annotations

import uuid

Target = tuple[str, dict[str, str]]

REGION = "us-east-1"
SFTP_USER = "testuser"
SFTP_PASSWORD = "testpass"


def make_bucket(endpoint: str) -> str:
    """Create a fresh bucket on the moto server and return its name."""
    import boto3

    bucket = f"test-{uuid.uuid4().hex[:8]}"
    client = boto3.client(
        "s3",
        endpoint_url=endpoint,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name=REGION,
    )
    client.create_bucket(Bucket=bucket)
    return bucket


def s3_config(endpoint: str, bucket: str) -> dict[str, str]:
    return {
        "bucket": bucket,
        "endpoint": endpoint,
        "region": REGION,
        "access_key_id": "testing",
        "secret_access_key": "testing",
    }


def sftp_config(port: int, **extra: str) -> dict[str, str]:
    """Config for a fresh root on the test server, accepting its host key."""
    config = {
        "endpoint": f"127.0.0.1:{port}",
        "user": SFTP_USER,
        "password": SFTP_PASSWORD,
        "root": f"/test_{uuid.uuid4().hex[:8]}",
        "known_hosts_strategy": "accept",
    }
    config.update(extra)
    return config
