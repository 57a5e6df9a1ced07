from __future__ import annotations

import os

import httpx
import pytest

LOCALSTACK_DEFAULT = "http://localhost:4566"


def _localstack_services(endpoint_url: str) -> dict[str, str]:
    """Service states reported by LocalStack, or {} when it is not up."""

    url = endpoint_url.rstrip("/") + "/_localstack/health"
    try:
        resp = httpx.get(url, timeout=1.5)
        resp.raise_for_status()
        payload = resp.json()
    except (httpx.HTTPError, ValueError):
        return {}
    services = payload.get("services") if isinstance(payload, dict) else None
    return services if isinstance(services, dict) else {}


@pytest.fixture(scope="session", autouse=True)
def localstack_env() -> None:
    """Point boto3 at LocalStack unless the caller already configured AWS."""

    os.environ.setdefault("USE_LOCALSTACK", "true")
    os.environ.setdefault("ENDPOINT_URL", LOCALSTACK_DEFAULT)
    os.environ.setdefault("AWS_REGION", "eu-west-1")

    # boto3 refuses to sign requests without credentials, even for LocalStack.
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")


@pytest.fixture(scope="session")
def require_localstack(localstack_env: None) -> str:
    endpoint_url = os.environ.get("ENDPOINT_URL") or LOCALSTACK_DEFAULT
    services = _localstack_services(endpoint_url)

    missing = [
        name
        for name in ("dynamodb", "sqs")
        if services.get(name) not in {"available", "running"}
    ]
    if missing:
        msg = f"LocalStack at {endpoint_url} lacks {', '.join(missing)}"

        # CI starts LocalStack itself, so a missing service is a real failure.
        if os.getenv("CI") or os.getenv("REQUIRE_LOCALSTACK"):
            pytest.fail(msg, pytrace=False)

        pytest.skip(f"{msg}; skipping integration tests")
    return endpoint_url
