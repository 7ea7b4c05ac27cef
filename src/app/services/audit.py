"""Fire-and-forget audit recording.

Services call ``AuditSink.record`` after their own work has committed. The
call never blocks and never raises: ``QueuedAuditSink`` puts the event on a
bounded queue and a background worker writes it in its own session. A full
queue drops the event with a warning, and a failed write is logged and
skipped. Nothing here can roll back or retry the operation that emitted the
event.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.audit_log import AuditLog
from app.models.enums import AuditAction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEvent:
    """One domain event waiting to be written."""

    actor_id: UUID | None
    action: AuditAction
    entity_type: str | None
    entity_id: str | None
    details: str | None = None
    ip_address: str | None = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditSink:
    """Interface for recording audit events.

    Implementations must return immediately and must not raise.
    """

    def record(
        self,
        actor_id: UUID | None,
        action: AuditAction,
        entity_type: str | None,
        entity_id: str | None,
        details: str | None = None,
        ip_address: str | None = None,
    ) -> bool:
        """Hand an event to the sink. Returns False if it was dropped."""
        raise NotImplementedError


class QueuedAuditSink(AuditSink):
    """Audit sink backed by a bounded ``asyncio.Queue`` and one worker task."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], maxsize: int = 1000):
        """
        Args:
            session_factory: Factory for the worker's own sessions
            maxsize: Queue capacity; events beyond it are dropped
        """
        self.session_factory = session_factory
        self.queue: asyncio.Queue[AuditEvent] = asyncio.Queue(maxsize=maxsize)
        self._worker: asyncio.Task | None = None

    def record(
        self,
        actor_id: UUID | None,
        action: AuditAction,
        entity_type: str | None,
        entity_id: str | None,
        details: str | None = None,
        ip_address: str | None = None,
    ) -> bool:
        event = AuditEvent(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            ip_address=ip_address,
        )
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Audit queue full, dropping %s event for %s %s",
                action.value,
                entity_type,
                entity_id,
            )
            return False
        return True

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the background worker on the running event loop."""
        if not self.running:
            self._worker = asyncio.create_task(self._run(), name="audit-sink-worker")

    async def stop(self) -> None:
        """Write whatever is queued, then stop the worker."""
        if not self.running:
            return
        await self.queue.join()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None

    async def _run(self) -> None:
        while True:
            event = await self.queue.get()
            try:
                await self.write(event)
            finally:
                self.queue.task_done()

    async def write(self, event: AuditEvent) -> None:
        """Persist one event. Any failure is logged and swallowed."""
        try:
            async with self.session_factory() as session:
                session.add(
                    AuditLog(
                        user_id=event.actor_id,
                        action=event.action,
                        entity_type=event.entity_type,
                        entity_id=event.entity_id,
                        details=event.details,
                        ip_address=event.ip_address,
                        created_at=event.occurred_at,
                        updated_at=event.occurred_at,
                    )
                )
                await session.commit()
            logger.debug("Audit event written: %s %s", event.action.value, event.entity_id)
        except Exception:
            logger.exception("Failed to write audit event %s", event.action.value)
