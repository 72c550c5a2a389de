"""
S3 object store collaborator.

Wraps a boto3 S3 client so the pipelines only ever see StoreError, never
botocore's exception types.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from .errors import StoreError

US_EAST_1 = "us-east-1"
ALREADY_OWNED_CODES = {"BucketAlreadyOwnedByYou"}


def _resolve_env_path(env_path: Optional[str] = None) -> str:
    """
    Determine which .env file should be used for AWS credentials.

    Priority order:
      1. Explicit parameter
      2. AWS_ENV_FILE environment variable
      3. ~/.env
    """
    if env_path:
        return env_path
    aws_env_file = os.environ.get("AWS_ENV_FILE")
    if aws_env_file:
        return aws_env_file
    return str(Path.home() / ".env")


def load_credentials_from_env(env_path: Optional[str] = None) -> tuple[str, str]:
    """
    Load AWS credentials from .env file and return them as a tuple.

    Args:
        env_path: Optional override path (defaults to ~/.env)

    Returns:
        tuple: (aws_access_key_id, aws_secret_access_key)

    Raises:
        ValueError: If credentials are not found in .env file
    """
    resolved_path = _resolve_env_path(env_path)
    load_dotenv(resolved_path)

    aws_access_key_id = os.getenv("AWS_ACCESS_KEY_ID")
    aws_secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY")
    if aws_access_key_id and aws_secret_access_key:
        logging.info("AWS credentials loaded from %s", resolved_path)
        return aws_access_key_id, aws_secret_access_key

    raise ValueError(f"AWS credentials not found in {resolved_path}")


def create_s3_client(region: str, env_path: Optional[str] = None):
    """
    Create an S3 boto3 client with credentials from the .env file.

    Args:
        region: AWS region name
        env_path: Optional .env override

    Returns:
        boto3.client: Configured S3 client
    """
    aws_access_key_id, aws_secret_access_key = load_credentials_from_env(env_path)
    client_kwargs = {
        "aws_access_key_id": aws_access_key_id,
        "aws_secret_access_key": aws_secret_access_key,
        "region_name": region,
    }
    aws_session_token = os.getenv("AWS_SESSION_TOKEN")
    if aws_session_token:
        client_kwargs["aws_session_token"] = aws_session_token
    return boto3.client("s3", **client_kwargs)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class S3ObjectStore:
    """Thin adapter exposing the bucket operations a backup run needs."""

    def __init__(self, client):
        self.client = client

    def create_container(self, name: str, region: str) -> None:
        """
        Create the destination bucket in region.

        us-east-1 does not accept a LocationConstraint, every other region
        requires one. A bucket we already own counts as created.

        Raises:
            StoreError: If the bucket could not be created
        """
        try:
            if region == US_EAST_1:
                self.client.create_bucket(Bucket=name)
            else:
                self.client.create_bucket(
                    Bucket=name,
                    CreateBucketConfiguration={"LocationConstraint": region},
                )
        except ClientError as exc:
            if _error_code(exc) in ALREADY_OWNED_CODES:
                logging.info("Bucket %s already exists and is owned by this account", name)
                return
            raise StoreError(f"Unable to create bucket {name}: {exc}") from exc
        except BotoCoreError as exc:
            raise StoreError(f"Unable to create bucket {name}: {exc}") from exc
        logging.info("Created S3 bucket %s in %s", name, region)

    def list_containers(self) -> list[str]:
        """Return the names of every bucket visible to the credentials."""
        try:
            response = self.client.list_buckets()
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"Unable to list buckets: {exc}") from exc
        return [bucket["Name"] for bucket in response.get("Buckets", [])]

    def put_object(self, container: str, key: str, body, content_digest: str) -> None:
        """Upload body under key, letting S3 verify it against content_digest."""
        try:
            self.client.put_object(
                Bucket=container,
                Key=key,
                Body=body,
                ContentMD5=content_digest,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"put_object failed for {container}/{key}: {exc}") from exc


__all__ = ["S3ObjectStore", "create_s3_client", "load_credentials_from_env"]
