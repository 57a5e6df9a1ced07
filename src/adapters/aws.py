from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import boto3
from botocore.client import BaseClient
from botocore.config import Config

if TYPE_CHECKING:
    from mypy_boto3_dynamodb import DynamoDBClient
    from mypy_boto3_sqs import SQSClient
else:
    DynamoDBClient = BaseClient  # type: ignore[misc,assignment]
    SQSClient = BaseClient  # type: ignore[misc,assignment]

LOCALSTACK_DEFAULT_URL = "http://localhost:4566"


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True, slots=True)
class AwsRuntimeConfig:
    """Where boto3 clients point.

    Env vars:
      - AWS_REGION (default: eu-west-1)
      - ENDPOINT_URL: explicit endpoint, wins over everything else
      - USE_LOCALSTACK + LOCALSTACK_ENDPOINT_URL: endpoint when ENDPOINT_URL
        is unset (default http://localhost:4566)
      - AWS_MAX_ATTEMPTS: botocore retry attempts (default 3)
    """

    region: str
    endpoint_url: str | None
    max_attempts: int = 3

    @staticmethod
    def from_env() -> AwsRuntimeConfig:
        endpoint_url = (os.getenv("ENDPOINT_URL") or "").strip() or None
        if endpoint_url is None and env_bool("USE_LOCALSTACK"):
            endpoint_url = os.getenv("LOCALSTACK_ENDPOINT_URL", LOCALSTACK_DEFAULT_URL)

        return AwsRuntimeConfig(
            region=os.getenv("AWS_REGION", "eu-west-1"),
            endpoint_url=endpoint_url,
            max_attempts=int(os.getenv("AWS_MAX_ATTEMPTS", "3")),
        )


@lru_cache(maxsize=8)
def _client(service: str, cfg: AwsRuntimeConfig) -> Any:
    # Clients are thread-safe; one per (service, config) is enough.
    session = boto3.session.Session(region_name=cfg.region)
    return session.client(
        service,
        endpoint_url=cfg.endpoint_url,
        config=Config(retries={"max_attempts": cfg.max_attempts, "mode": "standard"}),
    )


def sqs_client() -> SQSClient:
    return _client("sqs", AwsRuntimeConfig.from_env())


def dynamodb_client() -> DynamoDBClient:
    return _client("dynamodb", AwsRuntimeConfig.from_env())
