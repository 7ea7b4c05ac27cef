"""Periodic sweep that marks cards past their expiration date as EXPIRED."""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.services.audit import AuditSink
from app.services.card import CardService

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Runs ``CardService.update_expired_cards`` on a fixed interval."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        audit_sink: AuditSink,
        interval_seconds: float = 3600,
    ):
        self.session_factory = session_factory
        self.audit_sink = audit_sink
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    async def sweep_once(self) -> int:
        """Run one sweep in a fresh session. Returns the number of cards expired."""
        async with self.session_factory() as session:
            return await CardService(session, self.audit_sink).update_expired_cards()

    async def _run(self) -> None:
        while True:
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Expiry sweep failed; retrying next interval")
            await asyncio.sleep(self.interval_seconds)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            logger.info("Starting expiry sweep every %s seconds", self.interval_seconds)
            self._task = asyncio.create_task(self._run(), name="expiry-sweeper")

    async def stop(self) -> None:
        if not self.running:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
