from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmapos.dependencies import get_db
from pharmapos.models.drug import Drug
from pharmapos.schemas.drug import DrugCreate, DrugDeleteResult, DrugRead, DrugUpdate
from pharmapos.services import inventory_service

router = APIRouter(prefix="/drugs", tags=["Inventory"])


def _to_read(drug: Drug, today: Optional[date] = None) -> DrugRead:
    base = DrugRead.model_validate(drug).model_dump()
    base.update(inventory_service.stock_flags(drug, today=today))
    return DrugRead(**base)


@router.get("", response_model=list[DrugRead])
def list_drugs(
    search: Optional[str] = Query(None, description="Case-insensitive name filter"),
    db: Session = Depends(get_db),
):
    today = date.today()
    return [_to_read(drug, today) for drug in inventory_service.list_drugs(db, search=search)]


@router.post("", response_model=DrugRead, status_code=201)
def create_drug(payload: DrugCreate, db: Session = Depends(get_db)):
    drug = inventory_service.create_drug(db, payload.model_dump())
    return _to_read(drug)


@router.get("/{drug_id}", response_model=DrugRead)
def get_drug(drug_id: int, db: Session = Depends(get_db)):
    return _to_read(inventory_service.get_drug(db, drug_id))


@router.put("/{drug_id}", response_model=DrugRead)
def update_drug(drug_id: int, payload: DrugUpdate, db: Session = Depends(get_db)):
    drug = inventory_service.update_drug(db, drug_id, payload.model_dump(exclude_unset=True))
    return _to_read(drug)


@router.delete("/{drug_id}", response_model=DrugDeleteResult)
def delete_drug(drug_id: int, db: Session = Depends(get_db)):
    removed = inventory_service.delete_drug(db, drug_id)
    return DrugDeleteResult(message="Drug deleted successfully", deleted_sale_items=removed)


__all__ = ["router"]
