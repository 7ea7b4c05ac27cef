"""Integration tests for card issuance and lifecycle operations."""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.cards.number_generator import validate_luhn
from app.cards.pan_codec import PanCodec
from app.core.exceptions import (
    BusinessError,
    BusinessRule,
    CodecError,
    GenerationExhaustedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.models.enums import AuditAction, CardStatus
from app.models.transaction import Transaction
from app.repositories.card import CardRepository
from app.services.card import CardService
from app.services.transfer import TransferService

NEXT_YEAR = date.today() + timedelta(days=365)


@pytest.fixture
def service(db_session, audit_sink, codec):
    return CardService(db_session, audit_sink, codec)


class TestCreateCard:
    """Test card issuance."""

    @pytest.mark.asyncio
    async def test_admin_issues_card(self, service, codec, test_user, admin_principal, audit_sink):
        card = await service.create_card(test_user.id, NEXT_YEAR, Decimal("1000.00"), admin_principal)

        assert card.owner_id == test_user.id
        assert card.status == CardStatus.ACTIVE
        assert card.balance == Decimal("1000.00")
        number = codec.decrypt(card.card_number)
        assert len(number) == 16
        assert validate_luhn(number)
        assert number not in card.card_number
        assert audit_sink.actions() == [AuditAction.CREATE]
        assert number not in audit_sink.events[0].details

    @pytest.mark.asyncio
    async def test_regular_user_cannot_issue(self, service, test_user, user_principal):
        with pytest.raises(PermissionDeniedError):
            await service.create_card(test_user.id, NEXT_YEAR, Decimal("0"), user_principal)

    @pytest.mark.asyncio
    async def test_unknown_owner(self, service, admin_principal):
        with pytest.raises(NotFoundError) as exc_info:
            await service.create_card(uuid4(), NEXT_YEAR, Decimal("0"), admin_principal)
        assert exc_info.value.error_code == "RES_003"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [0, -1])
    async def test_expiration_must_be_in_future(self, service, test_user, admin_principal, days):
        with pytest.raises(ValidationError):
            await service.create_card(
                test_user.id, date.today() + timedelta(days=days), Decimal("0"), admin_principal
            )

    @pytest.mark.asyncio
    async def test_negative_balance_rejected(self, service, test_user, admin_principal):
        with pytest.raises(ValidationError):
            await service.create_card(test_user.id, NEXT_YEAR, Decimal("-0.01"), admin_principal)

    @pytest.mark.asyncio
    async def test_unstorable_balance_rejected(self, service, test_user, admin_principal):
        with pytest.raises(ValidationError) as exc_info:
            await service.create_card(test_user.id, NEXT_YEAR, Decimal("1E+30"), admin_principal)
        assert exc_info.value.details["field"] == "initial_balance"

    @pytest.mark.asyncio
    async def test_collision_is_retried(
        self, service, test_user, admin_principal, monkeypatch
    ):
        numbers = iter(["4276000000000001", "4276000000000001", "4276000000000019"])
        monkeypatch.setattr("app.services.card.generate", lambda bin: next(numbers))

        first = await service.create_card(test_user.id, NEXT_YEAR, Decimal("0"), admin_principal)
        second = await service.create_card(test_user.id, NEXT_YEAR, Decimal("0"), admin_principal)

        assert service.codec.decrypt(first.card_number) == "4276000000000001"
        assert service.codec.decrypt(second.card_number) == "4276000000000019"

    @pytest.mark.asyncio
    async def test_generation_gives_up_after_cap(
        self, db_session, audit_sink, codec, test_user, admin_principal, monkeypatch
    ):
        monkeypatch.setattr("app.services.card.generate", lambda bin: "4276000000000001")
        service = CardService(db_session, audit_sink, codec, max_attempts=3)
        await service.create_card(test_user.id, NEXT_YEAR, Decimal("0"), admin_principal)

        with pytest.raises(GenerationExhaustedError) as exc_info:
            await service.create_card(test_user.id, NEXT_YEAR, Decimal("0"), admin_principal)
        assert exc_info.value.details == {"attempts": 3}


class TestCardReads:
    """Test ownership checks on reads."""

    @pytest.mark.asyncio
    async def test_owner_and_admin_can_read(
        self, service, test_user, user_principal, admin_principal, make_card
    ):
        card = await make_card(test_user, "42.00")

        assert (await service.get_card(card.id, user_principal)).id == card.id
        assert (await service.get_card(card.id, admin_principal)).id == card.id
        assert await service.get_balance(card.id, user_principal) == Decimal("42.00")

    @pytest.mark.asyncio
    async def test_stranger_cannot_read(self, service, test_user, other_principal, make_card):
        card = await make_card(test_user)

        with pytest.raises(PermissionDeniedError):
            await service.get_card(card.id, other_principal)
        with pytest.raises(PermissionDeniedError):
            await service.get_balance(card.id, other_principal)

    @pytest.mark.asyncio
    async def test_missing_card(self, service, user_principal):
        with pytest.raises(NotFoundError):
            await service.get_card(uuid4(), user_principal)

    @pytest.mark.asyncio
    async def test_masked_number_depends_on_viewer(
        self, service, codec, test_user, user_principal, admin_principal, make_card
    ):
        card = await make_card(test_user)
        number = codec.decrypt(card.card_number)

        assert service.masked_number(card, user_principal) == f"**** **** **** {number[-4:]}"
        assert service.masked_number(card, admin_principal).startswith(number[:4])

    @pytest.mark.asyncio
    async def test_user_cards_and_admin_listing(
        self, service, test_user, other_user, admin_principal, user_principal, make_card
    ):
        await make_card(test_user)
        await make_card(test_user, status=CardStatus.BLOCKED)
        await make_card(other_user)

        cards, total = await service.get_user_cards(test_user.id)
        assert total == 2
        assert {c.owner_id for c in cards} == {test_user.id}

        cards, total = await service.list_cards(admin_principal, status=CardStatus.BLOCKED)
        assert total == 1

        cards, total = await service.list_cards(admin_principal, owner_id=other_user.id)
        assert total == 1

        with pytest.raises(PermissionDeniedError):
            await service.list_cards(user_principal)


class TestLifecycleOperations:
    """Test block, activate, delete and the expiry sweep."""

    @pytest.mark.asyncio
    async def test_owner_blocks_card(self, service, test_user, user_principal, make_card, audit_sink):
        card = await make_card(test_user)

        blocked = await service.block_card(card.id, user_principal)

        assert blocked.status == CardStatus.BLOCKED
        assert audit_sink.actions() == [AuditAction.BLOCK]

    @pytest.mark.asyncio
    async def test_blocking_twice_raises(self, service, test_user, user_principal, make_card):
        card = await make_card(test_user, status=CardStatus.BLOCKED)

        with pytest.raises(BusinessError) as exc_info:
            await service.block_card(card.id, user_principal)
        assert exc_info.value.rule == BusinessRule.CARD_BLOCKED

    @pytest.mark.asyncio
    async def test_admin_activates_card(
        self, service, test_user, admin_principal, make_card, audit_sink
    ):
        card = await make_card(test_user, status=CardStatus.BLOCKED)

        activated = await service.activate_card(card.id, admin_principal)

        assert activated.status == CardStatus.ACTIVE
        assert audit_sink.actions() == [AuditAction.ACTIVATE]

    @pytest.mark.asyncio
    async def test_activating_expired_card_raises(
        self, service, test_user, admin_principal, make_card
    ):
        card = await make_card(
            test_user, status=CardStatus.EXPIRED, expiration_date=date.today() - timedelta(days=1)
        )

        with pytest.raises(BusinessError) as exc_info:
            await service.activate_card(card.id, admin_principal)
        assert exc_info.value.rule == BusinessRule.CARD_EXPIRED

    @pytest.mark.asyncio
    async def test_activation_fails_if_number_cannot_be_decrypted(
        self, db_session, audit_sink, test_user, admin_principal, make_card
    ):
        card = await make_card(test_user, status=CardStatus.BLOCKED)
        service = CardService(db_session, audit_sink, PanCodec("rotated-secret"))

        with pytest.raises(CodecError):
            await service.activate_card(card.id, admin_principal)

        await db_session.rollback()
        await db_session.refresh(card)
        assert card.status == CardStatus.BLOCKED

    @pytest.mark.asyncio
    async def test_delete_cascades_to_transactions(
        self, db_session, service, audit_sink, codec, test_user, user_principal, admin_principal,
        make_card,
    ):
        source = await make_card(test_user, "100.00")
        destination = await make_card(test_user)
        await TransferService(db_session, audit_sink, codec).transfer(
            source.id, destination.id, Decimal("10.00"), user_principal
        )

        await service.delete_card(source.id, admin_principal)

        assert await CardRepository(db_session).get_by_id(source.id) is None
        result = await db_session.execute(select(func.count()).select_from(Transaction))
        assert result.scalar_one() == 0
        assert audit_sink.actions()[-1] == AuditAction.DELETE

    @pytest.mark.asyncio
    async def test_owner_cannot_delete(self, service, test_user, user_principal, make_card):
        card = await make_card(test_user)

        with pytest.raises(PermissionDeniedError):
            await service.delete_card(card.id, user_principal)

    @pytest.mark.asyncio
    async def test_expiry_sweep(self, service, test_user, make_card, audit_sink):
        yesterday = date.today() - timedelta(days=1)
        stale_active = await make_card(test_user, expiration_date=yesterday)
        stale_blocked = await make_card(test_user, status=CardStatus.BLOCKED, expiration_date=yesterday)
        fresh = await make_card(test_user)

        assert await service.update_expired_cards() == 2
        assert stale_active.status == CardStatus.EXPIRED
        assert stale_blocked.status == CardStatus.EXPIRED
        assert fresh.status == CardStatus.ACTIVE
        assert audit_sink.actions() == [AuditAction.EXPIRE, AuditAction.EXPIRE]
        assert all(event.actor_id is None for event in audit_sink.events)

        assert await service.update_expired_cards() == 0
