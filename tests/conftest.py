from datetime import date, datetime

import pytest

from models import DiscountContext, Entry, LineItem, MembershipState, VIPMember


@pytest.fixture
def normal_context():
    """Walk-in client, no manual discount."""
    return DiscountContext(is_vip=False, manual_discount_percent=0)


@pytest.fixture
def vip_context():
    return DiscountContext(is_vip=True)


@pytest.fixture
def haircut():
    return LineItem(name="Haircut", amount=300, category="Men")


@pytest.fixture
def shave():
    return LineItem(name="Shave", amount=80, category="Men")


@pytest.fixture
def today():
    return date(2024, 3, 10)


@pytest.fixture
def vips():
    return [
        VIPMember(phone="9000000001", name="Ravi Kumar", date="2023-06-01", staff="Asif"),
        VIPMember(phone="9000000002", name="Meena Shah", date="2023-03-10", staff="Rihan"),
        VIPMember(phone="9000000003", name="Arjun Das", date="2024-03-01", staff="Asif"),
    ]


def make_entry(day, staff, paid, services, method="Cash", at="10:00", phone="9000000009", name="Client"):
    return Entry(
        date=day,
        datetime=f"{day}T{at}:00",
        phone=phone,
        name=name,
        staff=staff,
        services=tuple(services),
        total=sum(s.amount for s in services),
        discount=0.0,
        paid=paid,
        member_status=MembershipState.NORMAL,
        payment_method=method,
    )


@pytest.fixture
def entries():
    fee = LineItem(name="VIP Membership Fee", amount=200)
    return [
        make_entry("2024-03-10", "Asif", 300, [LineItem("Haircut", 300)], at="09:30"),
        make_entry("2024-03-10", "Rihan", 840, [fee, LineItem("Styling", 800, "Women")], method="UPI", at="11:15"),
        make_entry("2024-03-10", " asif ", 150, [LineItem("Shave", 150)], method="Card", at="12:00"),
        make_entry("2024-02-26", "Asif", 450, [LineItem("Facial", 450, "Women")], at="16:45"),
        make_entry("2024-02-20", "Rihan", 380, [LineItem("Haircut", 300), LineItem("Shave", 80)]),
        make_entry("2024-01-05", "Asif", 100, [LineItem("Beard Trim", 100)]),
    ]


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 10, 14, 5, 30)
