"""Card service for issuing, reading and changing the state of cards."""
import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.cards import lifecycle
from app.cards.number_generator import generate
from app.cards.pan_codec import PanCodec, get_pan_codec
from app.config import settings
from app.core.exceptions import (
    GenerationExhaustedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.core.money import ZERO, to_money
from app.core.principal import Principal
from app.models.card import Card
from app.models.enums import AuditAction, CardStatus
from app.repositories.card import CardRepository
from app.repositories.user import UserRepository
from app.services.audit import AuditSink

logger = logging.getLogger(__name__)

ENTITY_TYPE = "Card"


def _require_admin(principal: Principal, action: str) -> None:
    if not principal.is_admin:
        raise PermissionDeniedError(details={"action": action, "principal_id": str(principal.id)})


class CardService:
    """Service layer for card-related operations."""

    def __init__(
        self,
        db: AsyncSession,
        audit_sink: AuditSink,
        codec: PanCodec | None = None,
        max_attempts: int | None = None,
    ):
        """Initialize card service.

        Args:
            db: Database session
            audit_sink: Where audit events are handed off after commit
            codec: Card number codec (process-wide codec by default)
            max_attempts: Cap on card number generation attempts
        """
        self.db = db
        self.card_repo = CardRepository(db)
        self.user_repo = UserRepository(db)
        self.audit = audit_sink
        self.codec = codec or get_pan_codec()
        self.max_attempts = max_attempts or settings.card_number_max_attempts

    def masked_number(self, card: Card, principal: Principal) -> str:
        """Masked form of the card number suitable for the given viewer."""
        if principal.is_admin:
            return self.codec.mask_privileged(card.card_number)
        return self.codec.mask(card.card_number)

    async def create_card(
        self,
        owner_id: UUID,
        expiration_date: date,
        initial_balance: Decimal | int | str,
        principal: Principal,
        today: date | None = None,
    ) -> Card:
        """Issue a new ACTIVE card to a user. Administrators only.

        Args:
            owner_id: User the card is issued to
            expiration_date: Last day the card is usable; must be in the future
            initial_balance: Opening balance, zero or more
            principal: Acting user
            today: Reference date (defaults to the current date)

        Returns:
            The persisted card

        Raises:
            PermissionDeniedError: If the principal is not an admin
            NotFoundError: If the owner does not exist
            ValidationError: On a past expiration date or a negative or unstorable balance
            GenerationExhaustedError: If no unique number was found
            CodecError: If the number cannot be encrypted
        """
        _require_admin(principal, "create_card")

        owner = await self.user_repo.get_by_id(owner_id)
        if owner is None:
            raise NotFoundError("RES_003", details={"user_id": str(owner_id)})

        today = today or date.today()
        if expiration_date <= today:
            raise ValidationError(
                details={"field": "expiration_date", "reason": "must be in the future"}
            )

        try:
            balance = to_money(initial_balance)
        except ValueError as exc:
            raise ValidationError(
                details={"field": "initial_balance", "reason": str(exc)}
            ) from exc
        if balance < ZERO:
            raise ValidationError(details={"field": "initial_balance", "reason": "negative"})

        encrypted = await self._generate_unique_number()
        card = await self.card_repo.create(
            Card(
                card_number=encrypted,
                owner_id=owner.id,
                expiration_date=expiration_date,
                status=CardStatus.ACTIVE,
                balance=balance,
            )
        )

        masked = self.codec.mask(encrypted)
        logger.info("Card %s issued to user %s", masked, owner.id)
        self.audit.record(
            principal.id,
            AuditAction.CREATE,
            ENTITY_TYPE,
            str(card.id),
            f"Card {masked} issued to user {owner.id}",
            principal.ip_address,
        )
        return card

    async def _generate_unique_number(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            encrypted = self.codec.encrypt(generate(settings.card_default_bin))
            if not await self.card_repo.exists_by_encrypted_number(encrypted):
                return encrypted
            logger.warning("Generated card number collided (attempt %d)", attempt)

        logger.error("No unique card number after %d attempts", self.max_attempts)
        raise GenerationExhaustedError(details={"attempts": self.max_attempts})

    async def _get_visible_card(self, card_id: UUID, principal: Principal) -> Card:
        card = await self.card_repo.get_by_id(card_id)
        if card is None:
            raise NotFoundError("RES_001", details={"card_id": str(card_id)})
        if not principal.can_access(card.owner_id):
            raise PermissionDeniedError(details={"card_id": str(card_id)})
        return card

    async def get_card(self, card_id: UUID, principal: Principal) -> Card:
        """Get a card visible to its owner or an administrator."""
        return await self._get_visible_card(card_id, principal)

    async def get_balance(self, card_id: UUID, principal: Principal) -> Decimal:
        card = await self._get_visible_card(card_id, principal)
        return card.balance

    async def get_user_cards(
        self, owner_id: UUID, skip: int = 0, limit: int = 100
    ) -> tuple[list[Card], int]:
        """Get one page of a user's cards with the total count."""
        return await self.card_repo.get_all_by_owner(owner_id, skip, limit)

    async def list_cards(
        self,
        principal: Principal,
        status: CardStatus | None = None,
        owner_id: UUID | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Card], int]:
        """Admin listing across all users."""
        _require_admin(principal, "list_cards")
        return await self.card_repo.list_with_filters(status, owner_id, skip, limit)

    async def block_card(self, card_id: UUID, principal: Principal) -> Card:
        """Block a card. Allowed for the owner or an administrator.

        Raises:
            NotFoundError: If the card does not exist
            PermissionDeniedError: If the principal is neither owner nor admin
            BusinessError: If the card is already blocked
        """
        card = await self.card_repo.get_by_id(card_id)
        if card is None:
            raise NotFoundError("RES_001", details={"card_id": str(card_id)})

        lifecycle.block(card, principal)
        await self.db.commit()
        await self.db.refresh(card)

        logger.info("Card %s blocked by %s", card.id, principal.id)
        self.audit.record(
            principal.id,
            AuditAction.BLOCK,
            ENTITY_TYPE,
            str(card.id),
            f"Card {self.codec.mask(card.card_number)} blocked",
            principal.ip_address,
        )
        return card

    async def activate_card(
        self, card_id: UUID, principal: Principal, today: date | None = None
    ) -> Card:
        """Reactivate a BLOCKED or EXPIRED card. Administrators only.

        Raises:
            NotFoundError: If the card does not exist
            PermissionDeniedError: If the principal is not an admin
            BusinessError: If the card is already active or expired by date
            CodecError: If the stored card number cannot be decrypted
        """
        card = await self.card_repo.get_by_id(card_id)
        if card is None:
            raise NotFoundError("RES_001", details={"card_id": str(card_id)})

        lifecycle.activate(card, principal, today)
        # A card whose number no longer decrypts stays out of circulation.
        self.codec.decrypt(card.card_number)
        await self.db.commit()
        await self.db.refresh(card)

        logger.info("Card %s activated by %s", card.id, principal.id)
        self.audit.record(
            principal.id,
            AuditAction.ACTIVATE,
            ENTITY_TYPE,
            str(card.id),
            f"Card {self.codec.mask(card.card_number)} activated",
            principal.ip_address,
        )
        return card

    async def delete_card(self, card_id: UUID, principal: Principal) -> None:
        """Delete a card and, through the cascade, its transactions. Administrators only."""
        _require_admin(principal, "delete_card")
        card = await self.card_repo.get_by_id(card_id)
        if card is None:
            raise NotFoundError("RES_001", details={"card_id": str(card_id)})

        masked = self.codec.mask(card.card_number)
        await self.db.delete(card)
        await self.db.commit()

        logger.info("Card %s deleted by %s", card_id, principal.id)
        self.audit.record(
            principal.id,
            AuditAction.DELETE,
            ENTITY_TYPE,
            str(card_id),
            f"Card {masked} deleted",
            principal.ip_address,
        )

    async def update_expired_cards(self, today: date | None = None) -> int:
        """Mark every card past its expiration date as EXPIRED.

        Returns:
            Number of cards that changed status
        """
        today = today or date.today()
        cards = await self.card_repo.get_expired_as_of(today)
        expired = [card for card in cards if lifecycle.expire(card)]
        if not expired:
            return 0

        await self.db.commit()
        logger.info("Expiry sweep marked %d card(s) as expired", len(expired))
        for card in expired:
            self.audit.record(
                None,
                AuditAction.EXPIRE,
                ENTITY_TYPE,
                str(card.id),
                f"Card {self.codec.mask(card.card_number)} expired on {card.expiration_date}",
            )
        return len(expired)
