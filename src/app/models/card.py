"""Card model representing virtual payment cards owned by users."""
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, Enum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel
from app.models.enums import CardStatus


class Card(BaseModel):
    """Card model representing a virtual payment card.

    ``card_number`` holds the encrypted PAN only. Encryption is deterministic,
    so the unique constraint on the ciphertext is a uniqueness check on the PAN.
    """

    __tablename__ = "cards"
    __table_args__ = (CheckConstraint("balance >= 0", name="ck_cards_balance_non_negative"),)

    card_number: Mapped[str] = mapped_column(String(500), unique=True, nullable=False, index=True)
    owner_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expiration_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[CardStatus] = mapped_column(
        Enum(CardStatus, native_enum=False, length=20),
        default=CardStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), default=Decimal("0.00"), nullable=False
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="cards")
    outgoing_transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        foreign_keys="Transaction.from_card_id",
        back_populates="from_card",
        passive_deletes="all",
    )
    incoming_transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction",
        foreign_keys="Transaction.to_card_id",
        back_populates="to_card",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<Card(id={self.id}, status={self.status}, owner_id={self.owner_id})>"
