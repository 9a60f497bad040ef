from datetime import datetime
from typing import List

from pydantic import Field, StrictInt

from pharmapos.core.constants import STORE_INT_MAX
from pharmapos.schemas.common import ApiModel, Money, RequestModel


class SaleLineRequest(RequestModel):
    drug_id: StrictInt
    quantity: StrictInt = Field(le=STORE_INT_MAX)


class SaleCreate(RequestModel):
    items: List[SaleLineRequest]


class SaleItemRead(ApiModel):
    id: int
    drug_id: int
    drug_name: str
    quantity: int
    price: Money
    subtotal: Money


class SaleRead(ApiModel):
    id: int
    total: Money
    created_at: datetime
    items: List[SaleItemRead]
