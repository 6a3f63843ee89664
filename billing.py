"""
billing.py
Invoice pricing (VIP tier or manual discount), manual-total reconciliation,
membership-fee helpers and assembly of the finalized entry record.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import Iterable

import utils
from models import (
    FLOAT_NOISE,
    MAX_ADJUST_STEPS,
    MEMBERSHIP_FEE_AMOUNT,
    MEMBERSHIP_FEE_NAME,
    MIN_RATE,
    VIP_DISCOUNT_RATE,
    VIP_DISCOUNT_THRESHOLD,
    DiscountContext,
    Entry,
    Invoice,
    LineItem,
    MembershipState,
    VIPMember,
)

logger = logging.getLogger(__name__)


def is_membership_fee(item: LineItem) -> bool:
    return item.name == MEMBERSHIP_FEE_NAME


def is_vip_eligible(item: LineItem) -> bool:
    return item.amount > VIP_DISCOUNT_THRESHOLD and not is_membership_fee(item)


def round_due(value: float) -> int:
    """
    Round a currency amount up to the next whole unit, never below zero.
    Used for both the amount due and reconciled line amounts so the two paths agree.
    Values within float noise of a whole unit stay on it: 240 / 0.8 gives 300, not 301.
    """
    value = max(0.0, value)
    nearest = round(value)
    if math.isclose(value, nearest, abs_tol=FLOAT_NOISE):
        return int(nearest)
    return int(math.ceil(value))


def discount_context(state: MembershipState, items: Iterable[LineItem], manual_discount_percent: float = 0.0) -> DiscountContext:
    """
    VIP pricing applies to an active member, or to a client buying the membership
    in this same visit (the fee item is on the bill).
    """
    enrolling = any(is_membership_fee(i) for i in items)
    return DiscountContext(
        is_vip=(state == MembershipState.ACTIVE) or enrolling,
        manual_discount_percent=float(manual_discount_percent or 0.0),
    )


def compute_invoice(items: Iterable[LineItem], context: DiscountContext) -> Invoice:
    items = list(items)
    subtotal = sum(item.amount for item in items)

    if context.is_vip:
        discount = sum(item.amount * VIP_DISCOUNT_RATE for item in items if is_vip_eligible(item))
    else:
        discount = subtotal * (context.manual_discount_percent / 100)

    return Invoice(
        subtotal=subtotal,
        discount_amount=discount,
        amount_due=round_due(subtotal - discount),
        vip_applied=context.is_vip,
    )


def item_rate(item: LineItem, context: DiscountContext) -> float:
    """Fraction of the item's amount that ends up in the amount due."""
    if is_membership_fee(item):
        return 1.0
    if context.is_vip:
        return 1.0 - VIP_DISCOUNT_RATE if item.amount > VIP_DISCOUNT_THRESHOLD else 1.0
    return max(MIN_RATE, 1.0 - context.manual_discount_percent / 100)


def effective_discount_percent(invoice: Invoice) -> float:
    if invoice.subtotal <= 0:
        return 0.0
    return round(invoice.discount_amount / invoice.subtotal * 100, 2)


# ---------- Manual total ----------

def parse_target(raw) -> int | None:
    """
    Parse a typed amount due. Returns None for anything that is not a
    non-negative number, otherwise the value rounded up.
    """
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value) or value < 0:
        return None
    return int(math.ceil(value))


def _shift_item(item: LineItem, diff: float, context: DiscountContext) -> LineItem:
    rate = item_rate(item, context)
    target_paid = item.amount * rate - diff
    new_amount = target_paid / rate

    # crossing the VIP threshold switches the rate, so solve with the other side's rate
    if context.is_vip and not is_membership_fee(item):
        if item.amount > VIP_DISCOUNT_THRESHOLD and new_amount <= VIP_DISCOUNT_THRESHOLD:
            new_amount = target_paid
        elif item.amount <= VIP_DISCOUNT_THRESHOLD and new_amount > VIP_DISCOUNT_THRESHOLD:
            new_amount = target_paid / (1.0 - VIP_DISCOUNT_RATE)

    return replace(item, amount=round_due(new_amount))


def reconcile_to_target(items: Iterable[LineItem], context: DiscountContext, target_amount_due) -> list[LineItem]:
    """
    Spread a manually typed amount due back over the line items so that
    compute_invoice() on the result gives that amount.

    The difference is split evenly over the named items, each item is solved
    back through its rate and rounded up, then the first named item is nudged
    by one unit at a time until the total matches. The nudge loop is capped at
    MAX_ADJUST_STEPS; if it runs out the closest list reached is returned.

    Invalid targets, targets equal to the current amount due and lists with
    no named items come back unchanged.
    """
    items = list(items)

    target = parse_target(target_amount_due)
    if target is None:
        return items

    current_due = compute_invoice(items, context).amount_due
    if abs(current_due - target) < 1:
        return items

    named = [item for item in items if item.name]
    if not named:
        return items

    diff_per_item = (current_due - target) / len(named)
    adjusted = [_shift_item(item, diff_per_item, context) if item.name else item for item in items]

    first = next(i for i, item in enumerate(adjusted) if item.name)
    due = compute_invoice(adjusted, context).amount_due
    steps = 0
    while due != target and steps < MAX_ADJUST_STEPS:
        step = -1 if due > target else 1
        adjusted[first] = replace(adjusted[first], amount=max(0, adjusted[first].amount + step))
        due = compute_invoice(adjusted, context).amount_due
        steps += 1

    if due != target:
        logger.warning(
            "Manual total not reached after %d steps: wanted %d, got %d", MAX_ADJUST_STEPS, target, due
        )
    return adjusted


# ---------- Membership fee ----------

def add_membership_fee(items: Iterable[LineItem]) -> list[LineItem]:
    """Put the membership fee at the top of the bill (once) and drop empty rows."""
    items = list(items)
    if any(is_membership_fee(i) for i in items):
        return items
    fee = LineItem(name=MEMBERSHIP_FEE_NAME, amount=MEMBERSHIP_FEE_AMOUNT, category="Men")
    return [fee] + [i for i in items if i.name]


def new_membership(entry: Entry) -> VIPMember | None:
    """Membership record to store for an entry that sold the membership, else None."""
    if not any(is_membership_fee(s) for s in entry.services):
        return None
    return VIPMember(phone=entry.phone, name=entry.name, date=entry.date, staff=entry.staff)


# ---------- Entry ----------

def build_entry(
    phone: str,
    name: str,
    staff: str,
    items: Iterable[LineItem],
    state: MembershipState,
    manual_discount_percent: float = 0.0,
    payment_method: str = "Cash",
    date: str | None = None,
    now: datetime | None = None,
) -> Entry:
    """
    Price the visit and return the record to persist.
    Raises ValueError listing the validation errors if the input is incomplete.
    """
    items = list(items)
    errors = utils.validate_entry_inputs(phone, name, staff, items, payment_method)
    if errors:
        raise ValueError(" ".join(errors))

    services = tuple(i for i in items if i.name and i.amount > 0)
    context = discount_context(state, services, manual_discount_percent)
    invoice = compute_invoice(services, context)
    now = now or datetime.now()

    entry = Entry(
        date=date or now.date().isoformat(),
        datetime=now.isoformat(timespec="seconds"),
        phone=phone.strip(),
        name=name.strip(),
        staff=staff.strip(),
        services=services,
        total=invoice.subtotal,
        discount=effective_discount_percent(invoice),
        paid=invoice.amount_due,
        member_status=MembershipState.ACTIVE if invoice.vip_applied else state,
        payment_method=payment_method,
    )
    logger.debug("Built entry for %s: total=%s paid=%s", entry.phone, entry.total, entry.paid)
    return entry
