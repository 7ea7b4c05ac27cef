"""Unit tests for the ordered transfer checks."""

from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core.principal import Capability, Principal
from app.models.enums import CardStatus
from app.services.transfer import (
    CROSS_OWNER,
    DESTINATION_NOT_USABLE,
    INSUFFICIENT_BALANCE,
    NON_POSITIVE_AMOUNT,
    NOT_SOURCE_OWNER,
    SAME_CARD,
    SOURCE_NOT_USABLE,
    check_transfer,
)

TODAY = date(2026, 6, 15)


def card(owner_id, balance="100.00", status=CardStatus.ACTIVE, expiration_date=None):
    return SimpleNamespace(
        id=uuid4(),
        owner_id=owner_id,
        balance=Decimal(balance),
        status=status,
        expiration_date=expiration_date or TODAY + timedelta(days=30),
    )


@pytest.fixture
def owner():
    return Principal(id=uuid4())


class TestCheckTransfer:
    def test_valid_transfer_passes(self, owner):
        assert check_transfer(card(owner.id), card(owner.id), Decimal("50.00"), owner, TODAY) is None

    def test_exact_balance_passes(self, owner):
        assert check_transfer(card(owner.id), card(owner.id), Decimal("100.00"), owner, TODAY) is None

    def test_cross_owner(self, owner):
        reason = check_transfer(card(owner.id), card(uuid4()), Decimal("1.00"), owner, TODAY)
        assert reason == CROSS_OWNER

    def test_principal_must_own_source(self, owner):
        stranger_id = uuid4()
        reason = check_transfer(card(stranger_id), card(stranger_id), Decimal("1.00"), owner, TODAY)
        assert reason == NOT_SOURCE_OWNER

    def test_admin_gets_no_exemption(self):
        admin = Principal(id=uuid4(), capabilities=frozenset({Capability.ADMIN}))
        owner_id = uuid4()
        reason = check_transfer(card(owner_id), card(owner_id), Decimal("1.00"), admin, TODAY)
        assert reason == NOT_SOURCE_OWNER

    def test_same_card(self, owner):
        source = card(owner.id)
        assert check_transfer(source, source, Decimal("1.00"), owner, TODAY) == SAME_CARD

    @pytest.mark.parametrize("amount", ["0.00", "-5.00"])
    def test_non_positive_amount(self, owner, amount):
        reason = check_transfer(card(owner.id), card(owner.id), Decimal(amount), owner, TODAY)
        assert reason == NON_POSITIVE_AMOUNT

    def test_blocked_source(self, owner):
        source = card(owner.id, status=CardStatus.BLOCKED)
        assert check_transfer(source, card(owner.id), Decimal("1.00"), owner, TODAY) == SOURCE_NOT_USABLE

    def test_source_past_expiry_date(self, owner):
        source = card(owner.id, expiration_date=TODAY - timedelta(days=1))
        assert check_transfer(source, card(owner.id), Decimal("1.00"), owner, TODAY) == SOURCE_NOT_USABLE

    def test_expired_destination(self, owner):
        destination = card(owner.id, status=CardStatus.EXPIRED)
        reason = check_transfer(card(owner.id), destination, Decimal("1.00"), owner, TODAY)
        assert reason == DESTINATION_NOT_USABLE

    def test_insufficient_balance(self, owner):
        reason = check_transfer(card(owner.id, "10.00"), card(owner.id), Decimal("10.01"), owner, TODAY)
        assert reason == INSUFFICIENT_BALANCE

    def test_first_failing_check_wins(self, owner):
        """Ownership is reported before amount, usability and balance."""
        source = card(owner.id, balance="0.00", status=CardStatus.BLOCKED)
        reason = check_transfer(source, card(uuid4()), Decimal("-1.00"), owner, TODAY)
        assert reason == CROSS_OWNER

    def test_amount_checked_before_usability(self, owner):
        source = card(owner.id, status=CardStatus.BLOCKED)
        reason = check_transfer(source, card(owner.id), Decimal("0.00"), owner, TODAY)
        assert reason == NON_POSITIVE_AMOUNT
