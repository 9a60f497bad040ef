"""Drug inventory CRUD."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import InvalidOperation
from typing import Any, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pharmapos.config import get_settings
from pharmapos.core.dates import normalize_date
from pharmapos.core.errors import InvalidInputError, NotFoundError
from pharmapos.core.money import to_money
from pharmapos.database.base import fits_integer_column
from pharmapos.models.drug import Drug

logger = logging.getLogger(__name__)

DRUG_FIELDS = ("name", "category", "price", "quantity", "expiry_date", "description")
_REQUIRED_FIELDS = ("name", "price", "quantity")


def _clean_fields(fields: Mapping[str, Any], *, creating: bool) -> dict[str, Any]:
    unknown = sorted(set(fields) - set(DRUG_FIELDS))
    if unknown:
        raise InvalidInputError("Unknown drug fields: {}".format(", ".join(unknown)))

    cleaned: dict[str, Any] = {}
    for key, value in fields.items():
        if value is None and key in _REQUIRED_FIELDS:
            raise InvalidInputError(f"{key} may not be null.")

        if key == "name":
            value = str(value).strip()
            if not value:
                raise InvalidInputError("Drug name cannot be empty.")
        elif key == "price":
            try:
                value = to_money(value)
            except (InvalidOperation, TypeError, ValueError):
                raise InvalidInputError("price must be a number.")
            if value < 0:
                raise InvalidInputError("price must be non-negative.")
        elif key == "quantity":
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInputError("quantity must be an integer.")
            if value < 0:
                raise InvalidInputError("quantity must be non-negative.")
            if not fits_integer_column(value):
                raise InvalidInputError("quantity is too large.")
        elif key == "expiry_date" and value is not None:
            parsed = normalize_date(value)
            if parsed is None:
                raise InvalidInputError("expiryDate must be a calendar date (YYYY-MM-DD).")
            value = parsed
        elif key in ("category", "description") and value is not None:
            value = str(value).strip() or None
        cleaned[key] = value

    if creating:
        if "name" not in cleaned:
            raise InvalidInputError("Drug name is required.")
        if "price" not in cleaned:
            raise InvalidInputError("price is required.")
        cleaned.setdefault("quantity", 0)
    return cleaned


def list_drugs(db: Session, search: Optional[str] = None) -> list[Drug]:
    stmt = select(Drug)
    if search:
        search = search.strip()
    if search:
        stmt = stmt.where(func.lower(Drug.name).contains(search.lower(), autoescape=True))
    stmt = stmt.order_by(Drug.created_at.desc(), Drug.id.desc())
    return list(db.execute(stmt).scalars().all())


def get_drug(db: Session, drug_id: int) -> Drug:
    drug = db.get(Drug, drug_id) if fits_integer_column(drug_id) else None
    if drug is None:
        raise NotFoundError("Drug not found.")
    return drug


def create_drug(db: Session, fields: Mapping[str, Any]) -> Drug:
    drug = Drug(**_clean_fields(fields, creating=True))
    db.add(drug)
    db.commit()
    db.refresh(drug)
    logger.info("drug_created id=%s name=%s quantity=%s", drug.id, drug.name, drug.quantity)
    return drug


def update_drug(db: Session, drug_id: int, fields: Mapping[str, Any]) -> Drug:
    drug = get_drug(db, drug_id)
    for key, value in _clean_fields(fields, creating=False).items():
        setattr(drug, key, value)
    db.commit()
    db.refresh(drug)
    logger.info("drug_updated id=%s fields=%s", drug.id, ",".join(sorted(fields)))
    return drug


def delete_drug(db: Session, drug_id: int) -> int:
    """Delete a drug and the sale lines that reference it.

    Returns the number of sale lines removed. Parent sale totals are left
    as recorded.
    """
    drug = get_drug(db, drug_id)
    removed = len(drug.sale_items)
    db.delete(drug)
    db.commit()
    logger.info("drug_deleted id=%s removed_sale_items=%s", drug_id, removed)
    return removed


def stock_flags(
    drug: Drug,
    *,
    today: Optional[date] = None,
    low_stock_threshold: Optional[int] = None,
    expiry_warning_days: Optional[int] = None,
) -> dict[str, bool]:
    settings = get_settings()
    if today is None:
        today = date.today()
    if low_stock_threshold is None:
        low_stock_threshold = settings.LOW_STOCK_THRESHOLD
    if expiry_warning_days is None:
        expiry_warning_days = settings.EXPIRY_WARNING_DAYS

    quantity = int(drug.quantity or 0)
    expiry = drug.expiry_date
    expired = expiry is not None and expiry < today
    expiring_soon = (
        expiry is not None
        and not expired
        and expiry <= today + timedelta(days=expiry_warning_days)
    )
    return {
        "low_stock": 0 < quantity <= low_stock_threshold,
        "out_of_stock": quantity == 0,
        "expired": expired,
        "expiring_soon": expiring_soon,
    }


__all__ = [
    "DRUG_FIELDS",
    "create_drug",
    "delete_drug",
    "get_drug",
    "list_drugs",
    "stock_flags",
    "update_drug",
]
