"""
DynamoDB-backed key-value store for deployments without a local disk.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, Optional

import boto3

from max_proxy.core.config import StoreSettings


class DynamoDBKeyValueStore:
    """Store values under ``pk`` with an epoch-seconds ``ttl`` attribute.

    The table should have DynamoDB TTL enabled on ``ttl``. Deletion by
    DynamoDB is lazy, so expired items are also filtered on read.
    """

    def __init__(
        self,
        settings: StoreSettings,
        *,
        resource: Any = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not settings.dynamodb_table_name:
            raise ValueError("DYNAMODB_TABLE_NAME is required for the dynamodb backend.")
        self._resource = resource or boto3.resource(
            "dynamodb", region_name=settings.region_name
        )
        self._table = self._resource.Table(settings.dynamodb_table_name)
        self._clock = clock

    async def get(self, key: str) -> Optional[str]:
        def _fetch() -> Optional[Dict[str, Any]]:
            response = self._table.get_item(Key={"pk": key})
            return response.get("Item")

        item = await asyncio.to_thread(_fetch)
        if not item:
            return None
        ttl = item.get("ttl")
        if ttl is not None and int(ttl) <= int(self._clock()):
            return None
        return item.get("value")

    async def put(self, key: str, value: str, *, ttl_seconds: int) -> None:
        item = {"pk": key, "value": value, "ttl": int(self._clock()) + ttl_seconds}
        await asyncio.to_thread(lambda: self._table.put_item(Item=item))


__all__ = ["DynamoDBKeyValueStore"]
