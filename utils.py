"""
utils.py
Validation, dates, membership lookup, billing cycles.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from models import (
    CYCLE_START_DAY,
    MEMBERSHIP_MONTHS,
    PAYMENT_METHODS,
    LineItem,
    MembershipState,
    VIPMember,
)


def today_iso() -> str:
    return date.today().isoformat()


def parse_iso(d: str) -> date:
    return date.fromisoformat(d)


def add_months(start: date, months: int) -> date:
    """
    Add months while keeping day in valid range (e.g., Jan 31 + 1 month => Feb 28/29).
    Negative values step backwards.
    """
    y = start.year + (start.month - 1 + months) // 12
    m = (start.month - 1 + months) % 12 + 1
    # last day of target month
    if m == 12:
        next_month = date(y + 1, 1, 1)
    else:
        next_month = date(y, m + 1, 1)
    last_day = next_month - timedelta(days=1)
    day = min(start.day, last_day.day)
    return date(y, m, day)


# ---------- Membership ----------

def membership_expiry(date_iso: str) -> str:
    """
    Enrolment date plus MEMBERSHIP_MONTHS. A day the target month lacks
    rolls into the next month (Feb 29 enrolment expires on Mar 1).
    """
    start = parse_iso(date_iso)
    end = add_months(start, MEMBERSHIP_MONTHS)
    if end.day < start.day:
        end += timedelta(days=start.day - end.day)
    return end.isoformat()


def find_vip(phone: str, vips: Iterable[VIPMember]) -> VIPMember | None:
    phone = phone.strip()
    if not phone:
        return None
    return next((v for v in vips if v.phone == phone), None)


def membership_status(phone: str, vips: Iterable[VIPMember], today: date | None = None) -> MembershipState:
    """
    Status of the client with this phone: normal if never enrolled, expired
    from the anniversary of the enrolment/renewal date onwards, else active.
    """
    vip = find_vip(phone, vips)
    if vip is None:
        return MembershipState.NORMAL
    today = today or date.today()
    if today >= parse_iso(membership_expiry(vip.date)):
        return MembershipState.EXPIRED
    return MembershipState.ACTIVE


def phone_suggestions(prefix: str, vips: Iterable[VIPMember], limit: int = 5) -> list[VIPMember]:
    prefix = prefix.strip()
    if len(prefix) < 2:
        return []
    return [v for v in vips if prefix in v.phone][:limit]


# ---------- Cycles ----------

def _parse_month(month: str) -> tuple[int, int]:
    y, m = (int(p) for p in month.split("-"))
    if not 1 <= m <= 12:
        raise ValueError(f"Invalid month: {month!r} (expected YYYY-MM).")
    return y, m


def cycle_bounds(month: str) -> tuple[str, str]:
    """
    Billing cycle for 'YYYY-MM': the 25th of the previous month through the 24th of this one.
    """
    y, m = _parse_month(month)
    start = add_months(date(y, m, CYCLE_START_DAY), -1)
    end = date(y, m, CYCLE_START_DAY - 1)
    return start.isoformat(), end.isoformat()


# ---------- Validation ----------

def validate_entry_inputs(
    phone: str, name: str, staff: str, items: list[LineItem], payment_method: str = "Cash"
) -> list[str]:
    errors: list[str] = []
    if not phone.strip():
        errors.append("Phone is required.")
    if not name.strip():
        errors.append("Name is required.")
    if not staff.strip():
        errors.append("Staff is required.")
    if not any(i.name and i.amount > 0 for i in items):
        errors.append("Add at least one service with an amount.")
    if payment_method not in PAYMENT_METHODS:
        errors.append(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}.")
    return errors
