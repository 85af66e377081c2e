"""Realtime gateway for Supabase postgres_changes subscriptions."""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from src.core.config import get_settings
from src.core.supabase import get_async_supabase_client

logger = logging.getLogger(__name__)

InsertCallback = Callable[[dict[str, Any]], Awaitable[None]]


def extract_record(payload: dict[str, Any]) -> dict[str, Any] | None:
    """Pull the inserted row out of a postgres_changes payload.

    The realtime client has delivered the row under "new" (normalized
    payloads) and under data.record (raw server payloads) across releases.
    """
    if not isinstance(payload, dict):
        return None
    if isinstance(payload.get("new"), dict):
        return payload["new"]
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("record"), dict):
        return data["record"]
    if isinstance(payload.get("record"), dict):
        return payload["record"]
    return None


def _log_callback_failure(task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Realtime callback failed: %s", exc, exc_info=exc)


class InsertSubscription:
    """Handle to one open realtime channel.

    Closing is idempotent. Pending callback tasks are cancelled on close so
    no event is delivered after the owner released the subscription.
    """

    def __init__(self, topic: str, client: Any, channel: Any) -> None:
        self.topic = topic
        self._client = client
        self._channel = channel
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def active(self) -> bool:
        """Whether the channel is still open."""
        return not self._closed

    def dispatch(self, callback: InsertCallback, record: dict[str, Any]) -> None:
        """Schedule the async callback for one inserted row."""
        if self._closed:
            return
        task = asyncio.ensure_future(callback(record))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_log_callback_failure)

    async def close(self) -> None:
        """Unsubscribe the channel and drop pending callbacks."""
        if self._closed:
            return
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        try:
            await self._client.remove_channel(self._channel)
        except Exception as e:
            logger.warning("Failed to remove realtime channel %s: %s", self.topic, e)
        logger.debug("Realtime channel %s closed", self.topic)


class RealtimeGateway:
    """Opens INSERT subscriptions filtered by a column equality predicate."""

    def __init__(
        self,
        client_provider: Callable[[], Awaitable[Any]] = get_async_supabase_client,
        schema: str | None = None,
    ) -> None:
        self._client_provider = client_provider
        self._schema = schema or get_settings().realtime_schema

    async def subscribe_inserts(
        self,
        table: str,
        column: str,
        value: str,
        callback: InsertCallback,
    ) -> InsertSubscription:
        """Listen for rows inserted into table where column equals value.

        Args:
            table: Table name to watch.
            column: Column used in the equality filter.
            value: Value the column must equal.
            callback: Coroutine function called with each inserted row.

        Returns:
            InsertSubscription: Open subscription; the caller must close it.
        """
        client = await self._client_provider()
        # The client keys channels by topic; viewers of one conversation need their own.
        topic = f"{table}:{value}:{uuid.uuid4().hex}"
        channel = client.channel(topic)
        subscription = InsertSubscription(topic, client, channel)

        def on_insert(payload: dict[str, Any]) -> None:
            record = extract_record(payload)
            if record is None:
                logger.warning("Ignoring realtime payload without a record on %s", topic)
                return
            subscription.dispatch(callback, record)

        channel.on_postgres_changes(
            "INSERT",
            callback=on_insert,
            table=table,
            schema=self._schema,
            filter=f"{column}=eq.{value}",
        )
        await channel.subscribe()
        logger.debug("Realtime channel %s subscribed", topic)
        return subscription

    @asynccontextmanager
    async def inserts(
        self,
        table: str,
        column: str,
        value: str,
        callback: InsertCallback,
    ) -> AsyncIterator[InsertSubscription]:
        """Scoped form of subscribe_inserts that always closes the channel."""
        subscription = await self.subscribe_inserts(table, column, value, callback)
        try:
            yield subscription
        finally:
            await subscription.close()
