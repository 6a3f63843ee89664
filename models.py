"""
models.py
Lightweight domain helpers (pricing constants, dataclasses).
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

CATEGORIES = ("Men", "Women")
PAYMENT_METHODS = ("Cash", "Card", "UPI")

# Membership fee sentinel: fixed price, never discounted
MEMBERSHIP_FEE_NAME = "VIP Membership Fee"
MEMBERSHIP_FEE_AMOUNT = 200
MEMBERSHIP_MONTHS = 12

# VIP tier: items priced above the threshold get a flat 20% off
VIP_DISCOUNT_RATE = 0.20
VIP_DISCOUNT_THRESHOLD = 100

# Floor for the manual-discount rate (keeps reconciliation from dividing by zero)
MIN_RATE = 0.0001

# Binary float error tolerated when rounding currency up to whole units
FLOAT_NOISE = 1e-9

# Step cap for the exact-fit loop in billing.reconcile_to_target
MAX_ADJUST_STEPS = 500

# Billing cycle runs from the 25th of the previous month to the 24th
CYCLE_START_DAY = 25


class MembershipState(str, Enum):
    NORMAL = "normal"
    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass(frozen=True)
class LineItem:
    name: str
    amount: float
    category: str = "Men"  # 'Men' or 'Women'

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError(f"Line item amount must be non-negative, got {self.amount}.")
        if self.category not in CATEGORIES:
            raise ValueError(f"Unknown category: {self.category!r}.")


@dataclass(frozen=True)
class DiscountContext:
    is_vip: bool
    manual_discount_percent: float = 0.0  # ignored when is_vip


@dataclass(frozen=True)
class Invoice:
    subtotal: float
    discount_amount: float
    amount_due: int
    vip_applied: bool


@dataclass(frozen=True)
class VIPMember:
    phone: str
    name: str
    date: str  # enrolment/renewal date, YYYY-MM-DD
    staff: str


@dataclass(frozen=True)
class Entry:
    date: str
    datetime: str
    phone: str
    name: str
    staff: str
    services: tuple[LineItem, ...]
    total: float
    discount: float  # effective percent
    paid: int
    member_status: MembershipState
    payment_method: str = "Cash"
