from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmapos.dependencies import get_db
from pharmapos.schemas.analytics import AnalyticsRead, QuickStatsRead
from pharmapos.services import analytics_service

router = APIRouter(tags=["Analytics"])


@router.get("/analytics", response_model=AnalyticsRead)
def sales_analytics(
    period: Optional[str] = Query(None, description="24h | 7d | 30d | 12m | custom"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
):
    return analytics_service.analytics_for_period(db, period, start_date, end_date)


@router.get("/quick-stats", response_model=QuickStatsRead)
def quick_stats(db: Session = Depends(get_db)):
    return analytics_service.quick_stats(db)


__all__ = ["router"]
