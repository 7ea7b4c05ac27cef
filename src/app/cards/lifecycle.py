"""Card status state machine and usability predicate.

States are ACTIVE, BLOCKED and EXPIRED. ACTIVE and BLOCKED move back and
forth; EXPIRED is entered only through the expiry sweep and left only through
an administrator's reactivation of a card that is not expired by date.

Usability never trusts the stored status alone: a card past its expiration
date is unusable even before the sweep marks it EXPIRED.
"""

from datetime import date, timedelta

from app.core.exceptions import BusinessError, BusinessRule, PermissionDeniedError
from app.core.principal import Principal
from app.models.card import Card
from app.models.enums import CardStatus


def is_expired(card: Card, today: date | None = None) -> bool:
    """True once ``today`` is past the card's expiration date."""
    today = today or date.today()
    return today > card.expiration_date


def is_usable(card: Card, today: date | None = None) -> bool:
    """A card can take part in a transfer only if ACTIVE and not expired."""
    return card.status == CardStatus.ACTIVE and not is_expired(card, today)


def is_expiring_soon(card: Card, days: int, today: date | None = None) -> bool:
    """True if the card expires within ``days`` days and has not expired yet."""
    today = today or date.today()
    return today <= card.expiration_date < today + timedelta(days=days)


def block(card: Card, principal: Principal) -> None:
    """Move a card to BLOCKED.

    Raises:
        PermissionDeniedError: If the principal is neither owner nor admin
        BusinessError: CARD_BLOCKED if the card is already blocked
    """
    if not principal.can_access(card.owner_id):
        raise PermissionDeniedError(details={"card_id": str(card.id), "action": "block"})
    if card.status == CardStatus.BLOCKED:
        raise BusinessError(BusinessRule.CARD_BLOCKED, details={"card_id": str(card.id)})
    card.status = CardStatus.BLOCKED


def activate(card: Card, principal: Principal, today: date | None = None) -> None:
    """Move a BLOCKED or EXPIRED card back to ACTIVE. Administrators only.

    Raises:
        PermissionDeniedError: If the principal is not an admin
        BusinessError: CARD_ALREADY_ACTIVE or CARD_EXPIRED
    """
    if not principal.is_admin:
        raise PermissionDeniedError(details={"card_id": str(card.id), "action": "activate"})
    if card.status == CardStatus.ACTIVE:
        raise BusinessError(BusinessRule.CARD_ALREADY_ACTIVE, details={"card_id": str(card.id)})
    if is_expired(card, today):
        raise BusinessError(BusinessRule.CARD_EXPIRED, details={"card_id": str(card.id)})
    card.status = CardStatus.ACTIVE


def expire(card: Card) -> bool:
    """Mark a card EXPIRED. Returns False if it already was."""
    if card.status == CardStatus.EXPIRED:
        return False
    card.status = CardStatus.EXPIRED
    return True
