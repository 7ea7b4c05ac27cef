"""Card repository with owner-scoped queries and row locking."""
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.card import Card
from app.models.enums import CardStatus
from app.repositories.base import BaseRepository


class CardRepository(BaseRepository[Card]):
    """Repository for Card model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Card)

    async def lock_for_update(self, card_ids: list[UUID]) -> dict[UUID, Card]:
        """
        Lock card rows for the rest of the current transaction.

        Rows are locked one statement at a time in ascending id order, so two
        transactions locking the same pair always queue in the same order and
        cannot deadlock. Missing ids are simply absent from the result.
        """
        locked: dict[UUID, Card] = {}
        for card_id in sorted(set(card_ids)):
            result = await self.db.execute(
                select(Card)
                .where(Card.id == card_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            card = result.scalar_one_or_none()
            if card is not None:
                locked[card_id] = card
        return locked

    async def exists_by_encrypted_number(self, encrypted_number: str) -> bool:
        """Check whether a card with this ciphertext already exists."""
        result = await self.db.execute(
            select(Card.id).where(Card.card_number == encrypted_number)
        )
        return result.scalar_one_or_none() is not None

    async def get_all_by_owner(
        self, owner_id: UUID, skip: int = 0, limit: int = 100
    ) -> tuple[list[Card], int]:
        """Get one page of a user's cards, newest first, with the total count."""
        query = (
            select(Card)
            .where(Card.owner_id == owner_id)
            .order_by(Card.created_at.desc())
        )
        return await self.paginate(query, skip, limit)

    async def get_expired_as_of(self, as_of: date) -> list[Card]:
        """Cards whose expiration date is before ``as_of`` but not yet marked EXPIRED."""
        result = await self.db.execute(
            select(Card).where(
                Card.expiration_date < as_of,
                Card.status != CardStatus.EXPIRED,
            )
        )
        return list(result.scalars().all())

    async def list_with_filters(
        self,
        status: CardStatus | None = None,
        owner_id: UUID | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Card], int]:
        """Admin listing with optional status and owner filters."""
        query = select(Card).order_by(Card.created_at.desc())
        if status is not None:
            query = query.where(Card.status == status)
        if owner_id is not None:
            query = query.where(Card.owner_id == owner_id)
        return await self.paginate(query, skip, limit)

    async def count_by_status(self) -> dict[CardStatus, int]:
        result = await self.db.execute(
            select(Card.status, func.count(Card.id)).group_by(Card.status)
        )
        counts = {status: 0 for status in CardStatus}
        counts.update({row[0]: int(row[1]) for row in result})
        return counts

    async def total_balance(self, owner_id: UUID | None = None) -> Decimal:
        query = select(func.coalesce(func.sum(Card.balance), 0))
        if owner_id is not None:
            query = query.where(Card.owner_id == owner_id)
        result = await self.db.execute(query)
        return Decimal(str(result.scalar_one())).quantize(Decimal("0.01"))
