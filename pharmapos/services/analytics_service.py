from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from pharmapos.core.constants import (
    CUSTOM_PERIOD,
    DEFAULT_PERIOD,
    PERIOD_WINDOWS,
    TOP_DRUGS_LIMIT,
)
from pharmapos.core.dates import as_utc, parse_bound, start_of_day, utc_now
from pharmapos.core.errors import InvalidInputError
from pharmapos.core.money import ZERO, to_money
from pharmapos.models.drug import Drug
from pharmapos.models.sale import Sale


def resolve_period(
    period: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> tuple[str, datetime, datetime]:
    """Turn a period shorthand (or a custom range) into a [from, to] window."""
    now = as_utc(now) if now is not None else utc_now()
    period = (period or DEFAULT_PERIOD).strip().lower()

    if period == CUSTOM_PERIOD:
        if not start_date or not end_date:
            raise InvalidInputError("A custom period needs both startDate and endDate.")
        try:
            from_date = parse_bound(start_date)
            to_date = parse_bound(end_date, end_of_day=True)
        except ValueError:
            raise InvalidInputError("startDate and endDate must be ISO dates.")
        if from_date > to_date:
            raise InvalidInputError("startDate must not be after endDate.")
        return period, from_date, to_date

    window = PERIOD_WINDOWS.get(period)
    if window is None:
        choices = ", ".join(list(PERIOD_WINDOWS) + [CUSTOM_PERIOD])
        raise InvalidInputError(f"Unknown period '{period}'. Use one of: {choices}.")
    return period, now - window, now


def sales_between(db: Session, from_date: datetime, to_date: datetime) -> list[Sale]:
    stmt = (
        select(Sale)
        .options(selectinload(Sale.items))
        .where(Sale.created_at >= from_date, Sale.created_at <= to_date)
        .order_by(Sale.created_at, Sale.id)
    )
    return list(db.execute(stmt).scalars().all())


def summarize_sales(sales: Iterable[Sale], *, limit: int = TOP_DRUGS_LIMIT) -> dict:
    """Revenue, units and top sellers for an already-selected set of sales.

    Drugs with equal quantities keep no particular order.
    """
    total_revenue = ZERO
    total_units = 0
    sales_count = 0
    per_drug: dict[int, dict] = {}

    for sale in sales:
        sales_count += 1
        total_revenue += to_money(sale.total)
        for item in sale.items:
            total_units += item.quantity
            entry = per_drug.get(item.drug_id)
            if entry is None:
                entry = {
                    "drug_id": item.drug_id,
                    "name": item.drug_name,
                    "quantity": 0,
                    "revenue": ZERO,
                }
                per_drug[item.drug_id] = entry
            entry["quantity"] += item.quantity
            entry["revenue"] += to_money(item.subtotal)

    top = sorted(per_drug.values(), key=lambda entry: entry["quantity"], reverse=True)[:limit]
    return {
        "total_revenue": to_money(total_revenue),
        "total_drugs_sold": total_units,
        "sales_count": sales_count,
        "top_selling_drugs": top,
    }


def aggregate(db: Session, from_date: datetime, to_date: datetime) -> dict:
    return summarize_sales(sales_between(db, from_date, to_date))


def analytics_for_period(
    db: Session,
    period: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> dict:
    period, from_date, to_date = resolve_period(period, start_date, end_date, now=now)
    summary = aggregate(db, from_date, to_date)
    summary.update(period=period, from_date=from_date, to_date=to_date)
    return summary


def quick_stats(db: Session, *, now: Optional[datetime] = None) -> dict:
    now = as_utc(now) if now is not None else utc_now()
    day_start = start_of_day(now)

    total_drugs = db.execute(select(func.count(Drug.id))).scalar_one()
    sales_today, revenue_today = db.execute(
        select(func.count(Sale.id), func.coalesce(func.sum(Sale.total), 0)).where(
            Sale.created_at >= day_start,
            Sale.created_at <= now,
        )
    ).one()
    return {
        "total_drugs": total_drugs,
        "sales_today": sales_today,
        "revenue_today": to_money(revenue_today),
    }


__all__ = [
    "aggregate",
    "analytics_for_period",
    "quick_stats",
    "resolve_period",
    "sales_between",
    "summarize_sales",
]
