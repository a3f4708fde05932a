# Overview: Service-layer reporting; financial reports and dashboard aggregates.

"""
Reporting Service

Read-only aggregates over sales and purchases of one tenant. All money is
summed as Decimal. Periods are half-open [start, end) in server UTC; "end"
is the moment the report is requested.

Periods:
    today  start of today
    week   7 days before start of today
    month  30 days before start of today
    year   1 year before start of today
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app
from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import Product, Purchase, Sale
from ..money import CENT, ZERO, money_str
from ..time_utils import day_bounds, start_of_day, to_utc_z, utcnow
from . import inventory_service

PERIODS = ("today", "week", "month", "year")

PERIOD_LABELS = {
    "today": "Hari Ini",
    "week": "7 Hari Terakhir",
    "month": "30 Hari Terakhir",
    "year": "1 Tahun Terakhir",
}


def period_range(period: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    if period not in PERIODS:
        raise ValidationError("Periode tidak valid", details={"period": period, "allowed": list(PERIODS)})

    now = now or utcnow()
    today = start_of_day(now)
    # Bound is inclusive of "now" itself
    end = now + timedelta(microseconds=1)

    if period == "today":
        return today, end
    if period == "week":
        return today - timedelta(days=7), end
    if period == "month":
        return today - timedelta(days=30), end
    try:
        start = today.replace(year=today.year - 1)
    except ValueError:
        # 29 February
        start = today.replace(year=today.year - 1, day=28)
    return start, end


def _sum_sales(tenant_id: int, start=None, end=None, user_id: int | None = None) -> tuple[Decimal, int]:
    query = db.session.query(func.coalesce(func.sum(Sale.total), 0), func.count(Sale.id)).filter(
        Sale.tenant_id == tenant_id
    )
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at < end)
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)
    total, count = query.one()
    return Decimal(total).quantize(CENT), count


def _percent_change(current, previous) -> str:
    """Day-over-day change, rounded to a whole percent; '0%' without a baseline."""
    if not previous:
        return "0%"
    change = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    return f"{change.quantize(Decimal('1'), rounding=ROUND_HALF_UP)}%"


def financial_report(tenant_id: int, period: str = "today", now: datetime | None = None) -> dict:
    start, end = period_range(period, now)

    sales = (
        db.session.query(Sale)
        .filter(Sale.tenant_id == tenant_id, Sale.created_at >= start, Sale.created_at < end)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .all()
    )
    purchases = (
        db.session.query(Purchase)
        .filter(Purchase.tenant_id == tenant_id, Purchase.created_at >= start, Purchase.created_at < end)
        .order_by(Purchase.created_at.desc(), Purchase.id.desc())
        .all()
    )

    total_sales = sum((Decimal(s.total) for s in sales), ZERO)
    total_purchases = sum((Decimal(p.total) for p in purchases), ZERO)
    count = len(sales)
    average = (total_sales / count).quantize(CENT, rounding=ROUND_HALF_UP) if count else ZERO

    return {
        "period": period,
        "period_label": PERIOD_LABELS[period],
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "sales": [s.to_dict() for s in sales],
        "purchases": [p.to_dict() for p in purchases],
        "stats": {
            "total_sales": money_str(total_sales),
            "total_purchases": money_str(total_purchases),
            "profit": money_str(total_sales - total_purchases),
            "transaction_count": count,
            "average_transaction": money_str(average),
        },
    }


def _recent_sales(tenant_id: int, limit: int = 5, user_id: int | None = None) -> list[Sale]:
    query = db.session.query(Sale).filter(Sale.tenant_id == tenant_id)
    if user_id is not None:
        query = query.filter(Sale.user_id == user_id)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()


def owner_dashboard(tenant_id: int, now: datetime | None = None) -> dict:
    now = now or utcnow()
    today_start, tomorrow = day_bounds(now)
    yesterday_start = today_start - timedelta(days=1)

    total_sales, _ = _sum_sales(tenant_id)
    today_sales, today_count = _sum_sales(tenant_id, today_start, tomorrow)
    yesterday_sales, yesterday_count = _sum_sales(tenant_id, yesterday_start, today_start)

    sales_last_7_days = []
    for offset in range(6, -1, -1):
        day_start, day_end = day_bounds(now - timedelta(days=offset))
        day_total, day_count = _sum_sales(tenant_id, day_start, day_end)
        sales_last_7_days.append({
            "date": day_start.date().isoformat(),
            "total": money_str(day_total),
            "transactions": day_count,
        })

    return {
        "stats": {
            "total_sales": money_str(total_sales),
            "today_sales": money_str(today_sales),
            "today_transactions": today_count,
            "sales_change": _percent_change(today_sales, yesterday_sales),
            "transactions_change": _percent_change(today_count, yesterday_count),
            "low_stock_count": inventory_service.count_low_stock(tenant_id),
        },
        "recent_transactions": [s.to_dict() for s in _recent_sales(tenant_id)],
        "sales_last_7_days": sales_last_7_days,
        "low_stock": [p.to_dict() for p in inventory_service.list_low_stock(tenant_id)],
    }


def kasir_dashboard(principal, now: datetime | None = None) -> dict:
    """Today's figures for the signed-in cashier plus the tenant's nearly-empty products."""
    now = now or utcnow()
    today_start, tomorrow = day_bounds(now)
    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)

    today_sales, today_count = _sum_sales(
        principal.tenant_id, today_start, tomorrow, user_id=principal.user_id
    )
    low_stock = (
        db.session.query(Product)
        .filter(Product.tenant_id == principal.tenant_id, Product.stock < threshold)
        .order_by(Product.stock.asc(), Product.name.asc())
        .limit(5)
        .all()
    )

    return {
        "stats": {
            "today_sales": money_str(today_sales),
            "today_transactions": today_count,
            "low_stock_threshold": threshold,
        },
        "recent_transactions": [
            s.to_dict() for s in _recent_sales(principal.tenant_id, user_id=principal.user_id)
        ],
        "low_stock": [p.to_dict() for p in low_stock],
    }
