"""
Infrastructure package for fieldguard.

Centralizes DynamoDB connectivity: client construction with timeouts and the
translation of boto3/botocore failures into fieldguard errors. Keep this layer
focused on I/O, decoupled from planning and scheduling logic.
"""

from fieldguard.infrastructure.dynamodb import (
    create_dynamodb_client,
    translate_store_error,
    update_item,
)

__all__ = [
    "create_dynamodb_client",
    "translate_store_error",
    "update_item",
]
