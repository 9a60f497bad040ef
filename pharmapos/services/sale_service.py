"""Sale creation: validate the cart, then write the sale and its stock
decrements in one transaction.

Stock is decremented with a conditional UPDATE (``quantity >= requested``)
so two sales racing for the same units can never drive a drug below zero:
whichever writes second matches no row and its whole transaction is rolled
back as InsufficientStockError.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from pharmapos.core.errors import InsufficientStockError, InvalidInputError, NotFoundError
from pharmapos.core.money import ZERO, line_subtotal, to_money
from pharmapos.core.session_auth import Principal
from pharmapos.database.base import fits_integer_column
from pharmapos.models.drug import Drug
from pharmapos.models.sale import Sale, SaleItem

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedLine:
    drug_id: int
    drug_name: str
    quantity: int
    price: Decimal
    subtotal: Decimal


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _line_values(item: Any) -> tuple[Any, Any]:
    if isinstance(item, Mapping):
        drug_id = item.get("drug_id", item.get("drugId"))
        quantity = item.get("quantity")
    else:
        drug_id = getattr(item, "drug_id", None)
        quantity = getattr(item, "quantity", None)
    if not _is_int(drug_id):
        raise InvalidInputError("Each sale item needs an integer drugId.")
    return drug_id, quantity


def validate_sale_lines(db: Session, items: Iterable[Any]) -> list[ValidatedLine]:
    """Check every requested line against current stock, in request order.

    Per line: the drug must exist, the requested amount must fit its stock,
    then the amount must be a whole number of at least 1. Stops at the
    first offending line. Repeated lines for one drug are checked against
    its stock cumulatively.
    """
    items = list(items or [])
    if not items:
        raise InvalidInputError("Sale must contain at least one item.")

    requested: Counter[int] = Counter()
    lines: list[ValidatedLine] = []
    for item in items:
        drug_id, quantity = _line_values(item)

        drug = db.get(Drug, drug_id) if fits_integer_column(drug_id) else None
        if drug is None:
            raise NotFoundError(f"Drug with id {drug_id} not found.")

        if _is_number(quantity):
            wanted = requested[drug_id] + quantity
            if wanted > int(drug.quantity):
                raise InsufficientStockError(drug.id, drug.name, int(drug.quantity), wanted)

        if not _is_int(quantity) or quantity < 1:
            raise InvalidInputError(f"Quantity for {drug.name} must be a whole number of at least 1.")
        requested[drug_id] += quantity

        price = to_money(drug.price)
        lines.append(
            ValidatedLine(
                drug_id=drug.id,
                drug_name=drug.name,
                quantity=quantity,
                price=price,
                subtotal=line_subtotal(price, quantity),
            )
        )
    return lines


def sale_total(lines: Iterable[ValidatedLine]) -> Decimal:
    return to_money(sum((line.subtotal for line in lines), ZERO))


def _decrement_stock(db: Session, lines: list[ValidatedLine]) -> None:
    wanted: Counter[int] = Counter()
    names: dict[int, str] = {}
    for line in lines:
        wanted[line.drug_id] += line.quantity
        names[line.drug_id] = line.drug_name

    for drug_id, quantity in wanted.items():
        result = db.execute(
            update(Drug)
            .where(Drug.id == drug_id, Drug.quantity >= quantity)
            .values(quantity=Drug.quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            continue
        available = db.execute(select(Drug.quantity).where(Drug.id == drug_id)).scalar_one_or_none()
        if available is None:
            raise NotFoundError(f"Drug with id {drug_id} not found.")
        log.warning(
            "stock_race drug_id=%s available=%s requested=%s",
            drug_id,
            available,
            quantity,
            extra={"drug_id": drug_id},
        )
        raise InsufficientStockError(drug_id, names[drug_id], int(available), quantity)


def create_sale(
    db: Session,
    items: Iterable[Any],
    principal: Optional[Principal] = None,
) -> Sale:
    """Create a sale from ``[{drug_id, quantity}, ...]``.

    Either the sale, all of its items and every stock decrement are
    committed together, or nothing is.
    """
    try:
        lines = validate_sale_lines(db, items)
        _decrement_stock(db, lines)

        sale = Sale(
            total=sale_total(lines),
            items=[
                SaleItem(
                    drug_id=line.drug_id,
                    drug_name=line.drug_name,
                    quantity=line.quantity,
                    price=line.price,
                    subtotal=line.subtotal,
                )
                for line in lines
            ],
        )
        db.add(sale)
        db.flush()

        # The conditional UPDATE bypassed the identity map.
        for drug_id in {line.drug_id for line in lines}:
            drug = db.get(Drug, drug_id)
            if drug is not None:
                db.expire(drug, ["quantity"])

        db.commit()
    except Exception:
        db.rollback()
        raise

    log.info(
        "sale_created sale_id=%s items=%s total=%s actor=%s",
        sale.id,
        len(sale.items),
        sale.total,
        principal.id if principal else None,
        extra={"sale_id": sale.id, "user_id": principal.id if principal else None},
    )
    return sale


def list_sales(db: Session) -> list[Sale]:
    stmt = select(Sale).order_by(Sale.created_at.desc(), Sale.id.desc())
    return list(db.execute(stmt).scalars().all())


def get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.get(Sale, sale_id) if fits_integer_column(sale_id) else None
    if sale is None:
        raise NotFoundError("Sale not found.")
    return sale


__all__ = [
    "ValidatedLine",
    "create_sale",
    "get_sale",
    "list_sales",
    "sale_total",
    "validate_sale_lines",
]
