# courier_mesh/services/analytics_service/reports.py
"""
Отчёты по таблице orders за период.

Считаются напрямую по сырым данным и не зависят от инкрементальных
агрегатов (general_stats, courier_stats).
"""

from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Optional

from courier_mesh.common.constants import OrderStatus
from courier_mesh.common.exceptions import ValidationError
from courier_mesh.infra.database import DatabaseManager
from courier_mesh.shared.models.stats import GeneralStatsReport

EPOCH_START = datetime(1970, 1, 1, tzinfo=timezone.utc)
DATE_FORMAT = "%Y-%m-%d"


def _parse_day(value: str, name: str) -> datetime:
    try:
        return datetime.strptime(value, DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        raise ValidationError(f"invalid {name} date format, use YYYY-MM-DD") from None


def parse_date_range(
    date_from: Optional[str],
    date_to: Optional[str],
    now: Optional[datetime] = None,
) -> tuple[datetime, datetime]:
    """
    Преобразует параметры from/to (YYYY-MM-DD) в границы периода.

    По умолчанию период от начала эпохи до текущего момента;
    дата `to` расширяется до конца суток.

    Raises:
        ValidationError: неверный формат даты
    """
    start = _parse_day(date_from, "from") if date_from else EPOCH_START
    if date_to:
        day = _parse_day(date_to, "to")
        end = datetime.combine(day.date(), time.max, tzinfo=timezone.utc)
    else:
        end = now or datetime.now(timezone.utc)
    return start, end


class ReportRepository:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def general_report(self, start: datetime, end: datetime) -> GeneralStatsReport:
        completed = OrderStatus.COMPLETED.value

        total = await self._db.fetchval(
            "SELECT COUNT(*) FROM orders WHERE created_at BETWEEN $1 AND $2",
            start,
            end,
        )
        active = await self._db.fetchval(
            "SELECT COUNT(*) FROM orders WHERE status <> $3 AND created_at BETWEEN $1 AND $2",
            start,
            end,
            completed,
        )
        done = await self._db.fetchval(
            "SELECT COUNT(*) FROM orders WHERE status = $3 AND completed_at BETWEEN $1 AND $2",
            start,
            end,
            completed,
        )
        average = await self._db.fetchval(
            """
            SELECT COALESCE(AVG(EXTRACT(EPOCH FROM (completed_at - created_at))), 0)
            FROM orders
            WHERE status = $3 AND completed_at BETWEEN $1 AND $2
            """,
            start,
            end,
            completed,
        )

        return GeneralStatsReport(
            total_orders=total or 0,
            active_orders=active or 0,
            completed_orders=done or 0,
            average_completion_time_seconds=float(average or 0),
        )
