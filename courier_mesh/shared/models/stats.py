# courier_mesh/shared/models/stats.py
"""
Модели агрегатов аналитики.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CourierStat(BaseModel):
    """Агрегированная статистика курьера."""

    courier_id: str
    courier_name: str = ""
    completed_orders: int = Field(0, ge=0)
    total_revenue: float = 0.0
    average_delivery_time_sec: float = Field(0.0, ge=0)


class GeneralStats(BaseModel):
    """Глобальные счётчики (инкрементальная проекция событий)."""

    total_orders: int = Field(0, ge=0)
    active_orders: int = Field(0, ge=0)
    completed_orders: int = Field(0, ge=0)


class GeneralStatsReport(BaseModel):
    """Отчёт за период, рассчитанный по таблице orders."""

    total_orders: int
    active_orders: int
    completed_orders: int
    average_completion_time_seconds: float
