"""Transaction model recording card-to-card transfer attempts."""
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel
from app.models.enums import TransactionStatus


class Transaction(BaseModel):
    """An append-only record of one transfer attempt, successful or not.

    ``created_at`` is the transaction timestamp. Rows are never updated.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint(
            "(status = 'FAILED') = (failure_reason IS NOT NULL)",
            name="ck_transactions_failure_reason",
        ),
    )

    from_card_id: Mapped[UUID] = mapped_column(
        ForeignKey("cards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    to_card_id: Mapped[UUID] = mapped_column(
        ForeignKey("cards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 2), nullable=False)
    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus, native_enum=False, length=20), nullable=False, index=True
    )
    failure_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Relationships
    from_card: Mapped["Card"] = relationship(
        "Card", foreign_keys=[from_card_id], back_populates="outgoing_transactions"
    )
    to_card: Mapped["Card"] = relationship(
        "Card", foreign_keys=[to_card_id], back_populates="incoming_transactions"
    )

    @property
    def timestamp(self):
        return self.created_at

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, status={self.status}, amount={self.amount})>"
