"""
reports.py
Revenue figures over entry and membership records (daily, cycle, per staff, monthly).
Rendering is left to the caller; everything here returns plain numbers or DataFrames.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

import pandas as pd

import utils
from billing import is_membership_fee, round_due
from models import MEMBERSHIP_FEE_AMOUNT, Entry, VIPMember

ENTRY_COLUMNS = [
    "date",
    "datetime",
    "phone",
    "name",
    "staff",
    "services",
    "total",
    "discount",
    "paid",
    "payment_method",
    "member_status",
    "has_fee",
    "service_count",
    "service_paid",
]


def service_paid(entry: Entry) -> int:
    """Amount paid for services only (membership fee taken out)."""
    fee = MEMBERSHIP_FEE_AMOUNT if any(is_membership_fee(s) for s in entry.services) else 0
    return round_due(entry.paid - fee)


def entries_frame(entries: Iterable[Entry]) -> pd.DataFrame:
    rows = []
    for e in entries:
        has_fee = any(is_membership_fee(s) for s in e.services)
        rows.append(
            {
                "date": e.date,
                "datetime": e.datetime,
                "phone": e.phone,
                "name": e.name,
                "staff": e.staff,
                "services": ", ".join(s.name for s in e.services),
                "total": e.total,
                "discount": e.discount,
                "paid": e.paid,
                "payment_method": e.payment_method,
                "member_status": str(getattr(e.member_status, "value", e.member_status)),
                "has_fee": has_fee,
                "service_count": sum(1 for s in e.services if not is_membership_fee(s)),
                "service_paid": service_paid(e),
            }
        )
    if not rows:
        return pd.DataFrame(columns=ENTRY_COLUMNS)
    return pd.DataFrame(rows, columns=ENTRY_COLUMNS)


def _between(df: pd.DataFrame, start: str, end: str) -> pd.DataFrame:
    # ISO dates compare correctly as strings
    return df[(df["date"] >= start) & (df["date"] <= end)]


def _latest_first(df: pd.DataFrame) -> pd.DataFrame:
    return df.sort_values("datetime", ascending=False, kind="stable").reset_index(drop=True)


def entries_on(entries: Iterable[Entry], day: str | None = None) -> pd.DataFrame:
    df = entries_frame(entries)
    day = day or utils.today_iso()
    return _latest_first(df[df["date"] == day])


def daily_summary(entries: Iterable[Entry], day: str | None = None) -> dict:
    df = entries_on(entries, day)
    return {
        "count": len(df),
        "service_total": int(df["service_paid"].sum()),
        "membership_total": int(df["has_fee"].sum()) * MEMBERSHIP_FEE_AMOUNT,
        "cash_total": float(df.loc[df["payment_method"] == "Cash", "paid"].sum()),
        "grand_total": float(df["paid"].sum()),
    }


def cycle_summary(entries: Iterable[Entry], vips: Iterable[VIPMember], month: str) -> dict:
    """
    Totals for the billing cycle of month ('YYYY-MM').
    Membership revenue counts memberships whose date falls in the cycle.
    """
    start, end = utils.cycle_bounds(month)
    df = _between(entries_frame(entries), start, end)
    new_members = [v for v in vips if start <= v.date <= end]

    total = float(df["paid"].sum())
    membership_revenue = len(new_members) * MEMBERSHIP_FEE_AMOUNT
    return {
        "start": start,
        "end": end,
        "entry_count": len(df),
        "new_memberships": len(new_members),
        "total_revenue": total,
        "membership_revenue": membership_revenue,
        "service_revenue": total - membership_revenue,
    }


def staff_cycle_stats(
    staff: Iterable[str],
    entries: Iterable[Entry],
    vips: Iterable[VIPMember],
    month: str | None = None,
    today: date | None = None,
) -> pd.DataFrame:
    """
    Revenue and memberships sold per staff member for the cycle of month
    ('YYYY-MM'), by default the cycle ending on the 24th of today's month.
    """
    month = month or (today or date.today()).strftime("%Y-%m")
    start, end = utils.cycle_bounds(month)
    df = _between(entries_frame(entries), start, end)
    revenue = df.groupby("staff")["paid"].sum()
    vips = list(vips)

    rows = []
    for name in staff:
        memberships = sum(1 for v in vips if v.staff == name and start <= v.date <= end)
        rows.append({"staff": name, "revenue": float(revenue.get(name, 0.0)), "memberships": memberships})
    return pd.DataFrame(rows, columns=["staff", "revenue", "memberships"])


def _norm(name) -> str:
    return str(name or "").strip().lower()


def staff_performance(entries: Iterable[Entry], staff_name: str, month: str) -> tuple[pd.DataFrame, dict]:
    """
    One staff member's transactions for the billing cycle of month, latest first, plus totals.
    Staff names match case-insensitively.
    """
    start, end = utils.cycle_bounds(month)
    df = _between(entries_frame(entries), start, end)
    df = _latest_first(df[df["staff"].map(_norm) == _norm(staff_name)])

    stats = {
        "total_revenue": int(df["service_paid"].sum()),
        "service_count": int(df["service_count"].sum()),
        "memberships": int(df["has_fee"].sum()),
        "transactions": len(df),
    }
    return df, stats


def revenue_summary_by_month(entries: Iterable[Entry]) -> pd.DataFrame:
    df = entries_frame(entries)
    if df.empty:
        return pd.DataFrame(columns=["month", "revenue"])
    df["month"] = df["date"].str[:7]
    out = df.groupby("month", as_index=False)["paid"].sum().rename(columns={"paid": "revenue"})
    return out.sort_values("month", ascending=False).reset_index(drop=True)
