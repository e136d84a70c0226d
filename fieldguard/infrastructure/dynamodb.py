"""
DynamoDB client construction and error translation.

The client is built once by the composition root and shared by every worker
thread; boto3 low-level clients are safe to invoke concurrently. botocore's
built-in retries are switched off so RetryPolicy is the only retry authority.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
)

from fieldguard.config import Settings
from fieldguard.errors import FatalStoreError, TransientStoreError, WriteConflict

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"

# Error codes DynamoDB returns for throttling and server-side hiccups.
TRANSIENT_ERROR_CODES = frozenset(
    {
        "ProvisionedThroughputExceededException",
        "ThrottlingException",
        "Throttling",
        "RequestLimitExceeded",
        "InternalServerError",
        "InternalFailure",
        "ServiceUnavailable",
        "TransactionConflictException",
    }
)


def create_dynamodb_client(settings: Settings, session: Optional[boto3.session.Session] = None) -> Any:
    """
    Create the boto3 DynamoDB client for a process lifetime.

    Parameters
    ----------
    settings : Settings
        Region, endpoint, timeouts and concurrency bound.
    session : boto3.session.Session, optional
        Pre-built session (profiles, tests). A default session is used otherwise.

    Returns
    -------
    Any
        Low-level boto3 DynamoDB client.
    """
    config = Config(
        connect_timeout=settings.connect_timeout_seconds,
        read_timeout=settings.read_timeout_seconds,
        max_pool_connections=max(settings.max_concurrency, 10),
        retries={"mode": "standard", "total_max_attempts": 1},
    )
    session = session or boto3.session.Session(region_name=settings.aws_region)
    kwargs: Dict[str, Any] = {"config": config}
    if settings.endpoint_url:
        kwargs["endpoint_url"] = settings.endpoint_url
    return session.client("dynamodb", **kwargs)


def error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def translate_store_error(exc: Exception) -> Exception:
    """
    Map a boto3/botocore failure onto the fieldguard error taxonomy.

    ConditionalCheckFailedException becomes WriteConflict; throttling, 5xx and
    connection/read-timeout failures become TransientStoreError; anything else
    (validation, access denied, missing table, unexpected exceptions) becomes
    FatalStoreError.
    """
    if isinstance(exc, ClientError):
        code = error_code(exc)
        message = exc.response.get("Error", {}).get("Message", str(exc))
        if code == CONDITIONAL_CHECK_FAILED:
            return WriteConflict(message)
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        if code in TRANSIENT_ERROR_CODES or status >= 500:
            return TransientStoreError(f"{code}: {message}")
        return FatalStoreError(f"{code or 'ClientError'}: {message}")
    if isinstance(exc, (BotoConnectionError, HTTPClientError)):
        return TransientStoreError(f"{type(exc).__name__}: {exc}")
    return FatalStoreError(f"{type(exc).__name__}: {exc}")


def update_item(client: Any, request: Dict[str, Any]) -> None:
    """
    Issue one conditional UpdateItem call.

    Raises
    ------
    WriteConflict
        If the condition expression evaluated false.
    TransientStoreError
        For throttling and network faults.
    FatalStoreError
        For every other failure.
    """
    try:
        client.update_item(**request)
    except Exception as exc:  # noqa: BLE001
        raise translate_store_error(exc) from exc


__all__ = [
    "CONDITIONAL_CHECK_FAILED",
    "TRANSIENT_ERROR_CODES",
    "create_dynamodb_client",
    "translate_store_error",
    "update_item",
]
