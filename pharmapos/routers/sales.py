from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmapos.core.session_auth import Principal
from pharmapos.dependencies import get_db, get_principal
from pharmapos.schemas.sale import SaleCreate, SaleRead
from pharmapos.services import sale_service

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.get("", response_model=list[SaleRead])
def list_sales(db: Session = Depends(get_db)):
    return sale_service.list_sales(db)


@router.post("", response_model=SaleRead, status_code=201)
def create_sale(
    payload: SaleCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    items = [item.model_dump() for item in payload.items]
    return sale_service.create_sale(db, items, principal=principal)


@router.get("/{sale_id}", response_model=SaleRead)
def get_sale(sale_id: int, db: Session = Depends(get_db)):
    return sale_service.get_sale(db, sale_id)


__all__ = ["router"]
