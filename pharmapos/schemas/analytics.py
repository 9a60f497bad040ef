from datetime import datetime
from typing import List

from pharmapos.schemas.common import ApiModel, Money


class TopSellingDrug(ApiModel):
    drug_id: int
    name: str
    quantity: int
    revenue: Money


class AnalyticsRead(ApiModel):
    total_revenue: Money
    total_drugs_sold: int
    sales_count: int
    top_selling_drugs: List[TopSellingDrug]
    period: str
    from_date: datetime
    to_date: datetime


class QuickStatsRead(ApiModel):
    total_drugs: int
    sales_today: int
    revenue_today: Money
