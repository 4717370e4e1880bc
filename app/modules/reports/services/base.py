"""
Base service class for Reports module

Common tenant filtering and date range handling for all report services.
The end date is inclusive: datetime columns are filtered up to the start of
the following day.
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.common.validators import money

# granularity -> (PostgreSQL to_char, SQLite strftime)
PERIOD_FORMATS = {
    "day": ("YYYY-MM-DD", "%Y-%m-%d"),
    "month": ("YYYY-MM", "%Y-%m"),
}


class BaseReportService:
    """Base service class for all report services"""

    def __init__(
        self,
        db: Session,
        tenant_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ):
        if start_date and end_date and end_date < start_date:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="end_date must be greater than or equal to start_date"
            )
        self.db = db
        self.tenant_id = tenant_id
        self.start_date = start_date
        self.end_date = end_date

    def _apply_date_filter(self, query, date_field):
        """Filter a Date column by the report period"""
        if self.start_date:
            query = query.filter(date_field >= self.start_date)
        if self.end_date:
            query = query.filter(date_field <= self.end_date)
        return query

    def _apply_datetime_filter(self, query, datetime_field):
        """Filter a DateTime column by the report period, end date inclusive"""
        if self.start_date:
            query = query.filter(datetime_field >= self._day_start(self.start_date))
        if self.end_date:
            query = query.filter(datetime_field < self._day_start(self.end_date + timedelta(days=1)))
        return query

    @staticmethod
    def _day_start(value: date) -> datetime:
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    def _sum_query(self, column):
        return self.db.query(func.coalesce(func.sum(column), 0))

    def _period_label(self, column, granularity: str = "month"):
        """SQL expression that renders a date column as YYYY-MM or YYYY-MM-DD for GROUP BY"""
        pg_format, sqlite_format = PERIOD_FORMATS[granularity]
        if self.db.get_bind().dialect.name == "postgresql":
            return func.to_char(column, pg_format)
        return func.strftime(sqlite_format, column)

    @staticmethod
    def _money(query) -> Decimal:
        return money(query.scalar())

    def period(self) -> dict:
        return {"period_start": self.start_date, "period_end": self.end_date}

    @staticmethod
    def _percentage(part: Decimal, whole: Decimal) -> float:
        if not whole:
            return 0.0
        return round(float(part) / float(whole) * 100, 2)
