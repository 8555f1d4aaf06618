"""Deduplication between ledger income and subscription payments."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Mapping

from .records import FinancialEntryRecord, SubscriptionPaymentRecord

LOGGER = logging.getLogger(__name__)


def build_shadow_set(
    subscription_payments: Iterable[SubscriptionPaymentRecord],
) -> frozenset[str]:
    """Return the ledger entry ids that mirror a subscription payment.

    Those entries are already represented by the payment itself and must be
    left out of every generic income sum. Ids pointing at deleted entries are
    kept; they simply never match anything.
    """

    shadow_ids = frozenset(
        payment.financial_entry_id
        for payment in subscription_payments
        if payment.financial_entry_id
    )
    LOGGER.debug("Built shadow set with %s linked ledger entries", len(shadow_ids))
    return shadow_ids


def is_generic_income(entry: FinancialEntryRecord, shadow_set: frozenset[str]) -> bool:
    return entry.is_income and entry.id not in shadow_set


def subscription_paid_date(
    payment: SubscriptionPaymentRecord,
    entries_by_id: Mapping[str, FinancialEntryRecord],
) -> date | None:
    """Date a paid subscription payment is bucketed under.

    Falls back to the paid date of the linked ledger entry so that a payment
    whose own ``paid_at`` was never recorded still replaces the entry it
    shadows. ``None`` means the payment cannot be placed in any period.
    """

    if payment.paid_at is not None:
        return payment.paid_at
    if payment.financial_entry_id:
        linked = entries_by_id.get(payment.financial_entry_id)
        if linked is not None:
            return linked.paid_at
    return None


def find_orphan_links(
    subscription_payments: Iterable[SubscriptionPaymentRecord],
    entries: Iterable[FinancialEntryRecord],
) -> list[SubscriptionPaymentRecord]:
    """Payments whose linked ledger entry no longer exists."""

    known_ids = {entry.id for entry in entries}
    return [
        payment
        for payment in subscription_payments
        if payment.financial_entry_id and payment.financial_entry_id not in known_ids
    ]
