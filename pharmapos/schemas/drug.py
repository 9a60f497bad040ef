from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, StrictInt, field_validator

from pharmapos.core.constants import STORE_INT_MAX
from pharmapos.schemas.common import ApiModel, Money, RequestModel


class DrugCreate(RequestModel):
    name: str = Field(min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=120)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    quantity: StrictInt = Field(0, ge=0, le=STORE_INT_MAX)
    expiry_date: Optional[date] = None
    description: Optional[str] = None


class DrugUpdate(RequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=120)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    quantity: Optional[StrictInt] = Field(None, ge=0, le=STORE_INT_MAX)
    expiry_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator("name", "price", "quantity")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class DrugRead(ApiModel):
    id: int
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    price: Money
    quantity: int
    expiry_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    low_stock: bool = False
    out_of_stock: bool = False
    expired: bool = False
    expiring_soon: bool = False


class DrugDeleteResult(ApiModel):
    success: bool = True
    message: str
    deleted_sale_items: int
