"""
Index synchronization consumer.

Consumes listing change events from a durable RabbitMQ queue and applies them
to the search index through the search service. Messages are processed one at
a time with manual acknowledgement:

- malformed payload or unknown action: rejected without requeue
- create/update: canonical fetch, then index; any failure requeues
- delete: engine delete; any failure requeues
- success: acknowledged once
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

import aio_pika
from aio_pika.abc import (
    AbstractChannel,
    AbstractConnection,
    AbstractIncomingMessage,
    AbstractQueue,
)

from listing_search.error_handling import ErrorHandler, RetryConfig
from listing_search.errors import (
    ConsumerShutdownError,
    InvalidRequestError,
    MalformedEventError,
    SearchServiceError,
)
from listing_search.models import ChangeAction, ChangeEvent
from listing_search.services.search import SearchService

logger = logging.getLogger(__name__)


class MessageOutcome(str, Enum):
    """Terminal state of one delivered message"""
    ACKED = "acked"
    REJECTED = "rejected"
    REQUEUED = "requeued"


class ListingChangeConsumer:
    """
    Background consumer that keeps the search index in sync with the catalog.

    Owns its broker connection and channel exclusively. Prefetch is 1, so a
    consumer instance applies mutations strictly in delivery order.
    """

    DEFAULT_QUEUE = "properties_queue"
    MESSAGE_TIMEOUT = 30.0

    def __init__(
        self,
        service: SearchService,
        amqp_url: str,
        queue_name: str = DEFAULT_QUEUE,
        message_timeout: float = MESSAGE_TIMEOUT,
        drain_timeout: float = 30.0,
        retry_config: RetryConfig = None,
        connect: Callable[..., Awaitable[AbstractConnection]] = aio_pika.connect_robust
    ):
        self.service = service
        self.amqp_url = amqp_url
        self.queue_name = queue_name or self.DEFAULT_QUEUE
        self.message_timeout = message_timeout
        self.drain_timeout = drain_timeout
        self._error_handler = ErrorHandler(retry_config)
        self._connect = connect

        self._connection: Optional[AbstractConnection] = None
        self._channel: Optional[AbstractChannel] = None
        self._queue: Optional[AbstractQueue] = None
        self._consume_task: Optional[asyncio.Task] = None
        self._closing = False
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def running(self) -> bool:
        return self._consume_task is not None and not self._consume_task.done()

    async def start(self) -> None:
        """
        Connect, declare the durable queue and begin consuming in the background.

        Connection attempts are retried with backoff; if every attempt fails
        the last error propagates and startup should abort.
        """
        logger.info(f"[CONSUMER] Connecting to RabbitMQ for queue '{self.queue_name}'")
        self._connection = await self._error_handler.retry_with_backoff(
            self._open_connection
        )

        try:
            self._channel = await self._connection.channel()
            await self._channel.set_qos(prefetch_count=1)
            self._queue = await self._channel.declare_queue(self.queue_name, durable=True)
        except Exception:
            await self._release()
            raise

        logger.info(f"[CONSUMER] Queue '{self.queue_name}' declared, waiting for messages...")
        self._closing = False
        self._consume_task = asyncio.create_task(self._consume(), name="listing-change-consumer")
        self._consume_task.add_done_callback(self._on_consume_done)

    async def _open_connection(self, timeout: float = None) -> AbstractConnection:
        return await self._connect(self.amqp_url, timeout=timeout)

    async def _consume(self) -> None:
        async with self._queue.iterator() as queue_iter:
            async for message in queue_iter:
                if self._closing:
                    await message.reject(requeue=True)
                    break

                self._idle.clear()
                try:
                    await self.process_message(message)
                finally:
                    self._idle.set()

                if self._closing:
                    break

    def _on_consume_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"[CONSUMER] Consume loop stopped unexpectedly: {error!r}")

    async def process_message(self, message: AbstractIncomingMessage) -> MessageOutcome:
        """
        Process one delivery and settle it with the broker.

        Args:
            message: Incoming AMQP message

        Returns:
            How the message was settled
        """
        logger.info(f"[CONSUMER] Received message: {message.body!r}")

        try:
            event = ChangeEvent.from_body(message.body)
        except MalformedEventError as e:
            logger.error(f"[CONSUMER] Rejecting malformed message: {e}")
            await message.reject(requeue=False)
            return MessageOutcome.REJECTED

        logger.info(f"[CONSUMER] Processing message: Action={event.action.value}, PropertyID={event.property_id}")

        try:
            await asyncio.wait_for(self._dispatch(event), timeout=self.message_timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"[CONSUMER] Processing timed out after {self.message_timeout}s "
                f"(Action={event.action.value}, PropertyID={event.property_id}), requeueing"
            )
            await message.reject(requeue=True)
            return MessageOutcome.REQUEUED
        except InvalidRequestError as e:
            logger.error(
                f"[CONSUMER] Canonical listing is not indexable "
                f"(Action={event.action.value}, PropertyID={event.property_id}): {e}"
            )
            await message.reject(requeue=False)
            return MessageOutcome.REJECTED
        except SearchServiceError as e:
            logger.error(
                f"[CONSUMER] Error processing message "
                f"(Action={event.action.value}, PropertyID={event.property_id}): {e}"
            )
            await message.reject(requeue=True)
            return MessageOutcome.REQUEUED
        except Exception:
            logger.exception(
                f"[CONSUMER] Unexpected error processing message "
                f"(Action={event.action.value}, PropertyID={event.property_id})"
            )
            await message.reject(requeue=True)
            return MessageOutcome.REQUEUED

        logger.info(f"[CONSUMER] Successfully processed message: Action={event.action.value}, PropertyID={event.property_id}")

        try:
            await message.ack()
        except Exception as e:
            logger.error(f"[CONSUMER] Error acknowledging message: {e}")
        return MessageOutcome.ACKED

    async def _dispatch(self, event: ChangeEvent) -> None:
        if event.action is ChangeAction.DELETE:
            await self.service.delete_listing(event.property_id)
            return

        listing = await self.service.fetch_canonical(event.property_id)
        if event.action is ChangeAction.CREATE:
            await self.service.index_listing(listing)
        else:
            await self.service.update_listing(listing)

    async def close(self) -> None:
        """
        Stop consuming and release the channel and connection.

        A message already being processed gets up to drain_timeout to finish;
        after that it is abandoned to the broker's redelivery. Channel and
        connection are both closed even if one of them fails.

        Raises:
            ConsumerShutdownError: one or more resources failed to close
        """
        logger.info("[CONSUMER] Closing RabbitMQ consumer")
        self._closing = True

        if self._consume_task is not None:
            try:
                await asyncio.wait_for(self._idle.wait(), timeout=self.drain_timeout)
            except asyncio.TimeoutError:
                logger.warning("[CONSUMER] In-flight message did not finish, abandoning it to redelivery")

            if not self._consume_task.done():
                self._consume_task.cancel()
            try:
                await self._consume_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"[CONSUMER] Consume loop ended with error: {e}")
            self._consume_task = None

        errors = await self._release()
        if errors:
            raise ConsumerShutdownError(errors)

        logger.info("[CONSUMER] RabbitMQ consumer closed successfully")

    async def _release(self) -> list:
        errors = []

        if self._channel is not None:
            try:
                await self._channel.close()
                logger.info("[CONSUMER] Channel closed successfully")
            except Exception as e:
                errors.append(e)
                logger.error(f"[CONSUMER] Error closing channel: {e}")
            self._channel = None

        if self._connection is not None:
            try:
                await self._connection.close()
                logger.info("[CONSUMER] Connection closed successfully")
            except Exception as e:
                errors.append(e)
                logger.error(f"[CONSUMER] Error closing connection: {e}")
            self._connection = None

        self._queue = None
        return errors
