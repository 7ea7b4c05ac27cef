"""Transaction repository: insert-only, with card- and owner-scoped queries.

There is deliberately no update or delete here; transaction rows are
immutable once written and only disappear through card deletion cascades.
"""
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from app.models.card import Card
from app.models.enums import TransactionStatus
from app.models.transaction import Transaction
from app.repositories.base import ReadRepository


def _with_cards(query):
    # Views need both cards' ciphertext for masking. Rows are immutable, so
    # refreshing instances already in the session is safe.
    return query.options(
        selectinload(Transaction.from_card), selectinload(Transaction.to_card)
    ).execution_options(populate_existing=True)


class TransactionRepository(ReadRepository[Transaction]):
    """Repository for Transaction model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    async def add(self, transaction: Transaction) -> Transaction:
        """Stage a new transaction row inside the caller's transaction (no commit)."""
        self.db.add(transaction)
        await self.db.flush()
        return transaction

    async def get_by_id(self, id: UUID) -> Transaction | None:
        """Get a transaction with both cards loaded."""
        result = await self.db.execute(_with_cards(select(Transaction).where(Transaction.id == id)))
        return result.scalar_one_or_none()

    async def get_by_card(
        self, card_id: UUID, skip: int = 0, limit: int = 100
    ) -> tuple[list[Transaction], int]:
        """Transactions where the card is either source or destination."""
        query = _with_cards(
            select(Transaction)
            .where(or_(Transaction.from_card_id == card_id, Transaction.to_card_id == card_id))
            .order_by(Transaction.created_at.desc())
        )
        return await self.paginate(query, skip, limit)

    async def get_by_owner(
        self, owner_id: UUID, skip: int = 0, limit: int = 100
    ) -> tuple[list[Transaction], int]:
        """Transactions touching any card owned by the user."""
        from_card = aliased(Card)
        to_card = aliased(Card)
        query = _with_cards(
            select(Transaction)
            .join(from_card, Transaction.from_card_id == from_card.id)
            .join(to_card, Transaction.to_card_id == to_card.id)
            .where(or_(from_card.owner_id == owner_id, to_card.owner_id == owner_id))
            .order_by(Transaction.created_at.desc())
        )
        return await self.paginate(query, skip, limit)

    async def list_with_filters(
        self,
        status: TransactionStatus | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Transaction], int]:
        """Admin listing with optional status and time-window filters."""
        query = _with_cards(select(Transaction).order_by(Transaction.created_at.desc()))
        if status is not None:
            query = query.where(Transaction.status == status)
        if start is not None:
            query = query.where(Transaction.created_at >= start)
        if end is not None:
            query = query.where(Transaction.created_at <= end)
        return await self.paginate(query, skip, limit)

    async def _sum_successful(self, column, card_id: UUID | None = None) -> Decimal:
        query = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.status == TransactionStatus.SUCCESS
        )
        if card_id is not None:
            query = query.where(column == card_id)
        result = await self.db.execute(query)
        return Decimal(str(result.scalar_one())).quantize(Decimal("0.01"))

    async def total_outgoing(self, card_id: UUID) -> Decimal:
        """Sum of successful transfers out of a card."""
        return await self._sum_successful(Transaction.from_card_id, card_id)

    async def total_incoming(self, card_id: UUID) -> Decimal:
        """Sum of successful transfers into a card."""
        return await self._sum_successful(Transaction.to_card_id, card_id)

    async def total_successful_amount(self) -> Decimal:
        return await self._sum_successful(Transaction.from_card_id)

    async def count_by_status(self) -> dict[TransactionStatus, int]:
        result = await self.db.execute(
            select(Transaction.status, func.count(Transaction.id)).group_by(Transaction.status)
        )
        counts = {status: 0 for status in TransactionStatus}
        counts.update({row[0]: int(row[1]) for row in result})
        return counts
