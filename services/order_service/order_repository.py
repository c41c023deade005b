from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, List, Optional, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError

from libs.redis_common.models import Order
from libs.redis_common.serdes_json import deserialize_order, serialize_order

logger = logging.getLogger(__name__)

T = TypeVar("T")

ORDERS_INDEX_KEY = "orders"


class OrderRepositoryError(RuntimeError):
    """Base error for every failure raised by the order repository."""


class EncodingError(OrderRepositoryError):
    """Raised when an order cannot be serialized."""


class DecodingError(OrderRepositoryError):
    """Raised when a stored value cannot be parsed back into an order."""


class OrderNotFound(OrderRepositoryError):
    """Raised when no order is stored under the requested id."""


class InsertFailed(OrderRepositoryError):
    """Raised when an order could not be created."""


class OrderAlreadyExists(InsertFailed):
    """Raised when the primary key of the order is already taken."""


class StoreError(OrderRepositoryError):
    """Raised on transport or server failures reported by Redis."""


class TransactionError(StoreError):
    """Raised when a MULTI/EXEC transaction fails to commit."""


class ScanError(StoreError):
    """Raised when scanning the orders index fails."""


class FetchError(StoreError):
    """Raised when the orders listed by the index cannot be fetched."""


def order_key(order_id: int) -> str:
    """Primary Redis key of an order."""
    return f"order:{order_id}"


@dataclass(frozen=True)
class FindAllPage:
    size: int = 50
    offset: int = 0


@dataclass
class FindResult:
    orders: List[Order] = field(default_factory=list)
    cursor: int = 0


class RedisOrderRepository:
    """
    Stores orders in Redis as JSON values under ``order:<id>`` and keeps
    every key in the ``orders`` set so the collection can be paged with SSCAN.

    The repository holds no state of its own. Uniqueness and existence checks
    are done by Redis (SET NX / SET XX), and the two-key writes run inside
    MULTI/EXEC. Every method accepts ``timeout`` in seconds; when omitted the
    repository-wide ``command_timeout`` applies. Deadline expiry and task
    cancellation reach the caller unchanged.
    """

    def __init__(self, client: Redis, command_timeout: Optional[float] = None) -> None:
        self.client = client
        self.command_timeout = command_timeout

    async def _bounded(self, aw: Awaitable[T], timeout: Optional[float]) -> T:
        timeout = self.command_timeout if timeout is None else timeout
        if timeout is None:
            return await aw
        return await asyncio.wait_for(aw, timeout)

    @staticmethod
    def _encode(order: Order) -> str:
        try:
            return serialize_order(order)
        except ValueError as e:
            raise EncodingError(f"failed to encode order: {e}") from e

    @staticmethod
    def _decode(raw: Any) -> Order:
        try:
            return deserialize_order(raw)
        except ValueError as e:
            raise DecodingError(f"failed to decode order: {e}") from e

    async def insert(self, order: Order, timeout: Optional[float] = None) -> None:
        """Creates the order and indexes it; raises OrderAlreadyExists if its key is taken."""
        data = self._encode(order)
        key = order_key(order.order_id)

        async with self.client.pipeline(transaction=True) as pipe:
            pipe.set(key, data, nx=True)
            pipe.sadd(ORDERS_INDEX_KEY, key)
            try:
                created, _ = await self._bounded(pipe.execute(), timeout)
            except RedisError as e:
                raise TransactionError(f"failed to execute transaction: {e}") from e

        # The key already existed, so it is already a member of the index and
        # the SADD above left the set unchanged.
        if not created:
            raise OrderAlreadyExists(f"failed to insert order: {key} already exists")

        logger.info("Inserted %s", key)

    async def find_by_id(self, order_id: int, timeout: Optional[float] = None) -> Order:
        """Returns the stored order or raises OrderNotFound."""
        key = order_key(order_id)

        try:
            value = await self._bounded(self.client.get(key), timeout)
        except RedisError as e:
            raise StoreError(f"failed to get order: {e}") from e

        if value is None:
            raise OrderNotFound(f"order {order_id} does not exist")

        return self._decode(value)

    async def delete_by_id(self, order_id: int, timeout: Optional[float] = None) -> None:
        """Removes the order and its index membership in one transaction."""
        key = order_key(order_id)

        async with self.client.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            pipe.srem(ORDERS_INDEX_KEY, key)
            try:
                deleted, unindexed = await self._bounded(pipe.execute(), timeout)
            except RedisError as e:
                raise TransactionError(f"failed to delete order: {e}") from e

        if not deleted:
            if unindexed:
                logger.warning("Removed dangling index member %s", key)
            raise OrderNotFound(f"order {order_id} does not exist")

        logger.info("Deleted %s", key)

    async def update(self, order: Order, timeout: Optional[float] = None) -> None:
        """Replaces the stored value; raises OrderNotFound without creating the key."""
        data = self._encode(order)
        key = order_key(order.order_id)

        try:
            updated = await self._bounded(self.client.set(key, data, xx=True), timeout)
        except RedisError as e:
            raise StoreError(f"failed to update order: {e}") from e

        if not updated:
            raise OrderNotFound(f"order {order.order_id} does not exist")

        logger.info("Updated %s", key)

    async def find_all(self, page: FindAllPage, timeout: Optional[float] = None) -> FindResult:
        """
        Returns up to ``page.size`` orders from the index starting at the
        SSCAN cursor ``page.offset``, with the cursor to resume from (0 once
        the scan is complete). A page with no orders may still carry a
        non-zero cursor to resume from.

        ``timeout`` bounds the scan and the fetch together.

        The scan is not a snapshot: orders inserted or deleted while paging
        may be skipped, and an order may show up on more than one page.
        """
        if page.size <= 0:
            return FindResult()

        return await self._bounded(self._scan_page(page), timeout)

    async def _scan_page(self, page: FindAllPage) -> FindResult:
        try:
            cursor, keys = await self.client.sscan(
                ORDERS_INDEX_KEY, cursor=page.offset, match="*", count=page.size
            )
        except RedisError as e:
            raise ScanError(f"failed to get order IDs: {e}") from e

        if not keys:
            return FindResult(orders=[], cursor=int(cursor))

        try:
            values = await self.client.mget(keys)
        except RedisError as e:
            raise FetchError(f"failed to get orders: {e}") from e

        orders: List[Order] = []
        for key, value in zip(keys, values):
            if value is None:
                raise FetchError(f"indexed order {key} has no stored value")
            orders.append(self._decode(value))

        logger.debug("Scanned %d orders, next cursor %s", len(orders), cursor)
        return FindResult(orders=orders, cursor=int(cursor))
