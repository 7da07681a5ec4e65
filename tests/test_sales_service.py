import uuid
from datetime import datetime
from decimal import Decimal

import pytest

from app.core.errors import ValidationError
from app.models.sale import Sale, SaleStatus
from app.services import sales_service


def _sale(db, when: datetime, amount: str, currency: str = "IDR", status: SaleStatus = SaleStatus.COMPLETED) -> Sale:
    s = Sale(
        id=str(uuid.uuid4()),
        booking_id=str(uuid.uuid4()),
        payment_id=str(uuid.uuid4()),
        amount=Decimal(amount),
        currency=currency,
        status=status,
        created_at=when,
    )
    db.add(s)
    db.commit()
    return s


@pytest.fixture()
def ledger(db):
    _sale(db, datetime(2029, 12, 31, 10, 0), "100")
    _sale(db, datetime(2030, 1, 2, 9, 30), "200")
    _sale(db, datetime(2030, 1, 8, 23, 59), "10", currency="USD")
    _sale(db, datetime(2030, 1, 9, 8, 0), "999", status=SaleStatus.REFUNDED)


def _rows(buckets):
    return [(b["label"], b["currency"], b["total"], b["count"]) for b in buckets]


def test_daily(db, ledger):
    assert _rows(sales_service.aggregate(db, "day")) == [
        ("2029-12-31", "IDR", Decimal("100"), 1),
        ("2030-01-02", "IDR", Decimal("200"), 1),
        ("2030-01-08", "USD", Decimal("10"), 1),
    ]


def test_weekly_uses_iso_weeks(db, ledger):
    # 2029-12-31 is a Monday in ISO week 1 of 2030
    assert _rows(sales_service.aggregate(db, "week")) == [
        ("2030-W01", "IDR", Decimal("300"), 2),
        ("2030-W02", "USD", Decimal("10"), 1),
    ]


def test_monthly_and_yearly_keep_currencies_apart(db, ledger):
    assert _rows(sales_service.aggregate(db, "month")) == [
        ("2029-12", "IDR", Decimal("100"), 1),
        ("2030-01", "IDR", Decimal("200"), 1),
        ("2030-01", "USD", Decimal("10"), 1),
    ]
    assert [(r[0], r[1]) for r in _rows(sales_service.aggregate(db, "year"))] == [
        ("2029", "IDR"),
        ("2030", "IDR"),
        ("2030", "USD"),
    ]


def test_unknown_period(db):
    with pytest.raises(ValidationError):
        sales_service.aggregate(db, "fortnight")


def test_empty_ledger(db):
    assert sales_service.aggregate(db, "month") == []
    assert sales_service.summary(db) == {"total_revenue": {}, "total_orders": 0}


def test_summary_counts_completed_only(db, ledger):
    s = sales_service.summary(db)
    assert s["total_orders"] == 3
    assert s["total_revenue"] == {"IDR": Decimal("300"), "USD": Decimal("10")}


def test_record_from_payment_is_idempotent(db):
    first = sales_service.record_from_payment(db, "pay-1", "book-1", Decimal("500"), "IDR")
    again = sales_service.record_from_payment(db, "pay-1", "book-1", Decimal("500"), "IDR")
    db.commit()

    assert again.id == first.id
    assert db.query(Sale).count() == 1


def test_list_sales_newest_first(db, ledger):
    dates = [s.created_at for s in sales_service.list_sales(db)]
    assert dates == sorted(dates, reverse=True)
    assert len(dates) == 4
