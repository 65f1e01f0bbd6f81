from typing import Optional

from fastapi import APIRouter, Depends, Query

from courier_mesh.common.exceptions import NotFoundError
from courier_mesh.services.analytics_service.dependencies import get_report_repository, get_stats_store
from courier_mesh.services.analytics_service.reports import ReportRepository, parse_date_range
from courier_mesh.services.analytics_service.store import StatsStore
from courier_mesh.shared.models.stats import CourierStat, GeneralStats, GeneralStatsReport

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/general", response_model=GeneralStatsReport)
async def general_stats(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    reports: ReportRepository = Depends(get_report_repository),
):
    start, end = parse_date_range(date_from, date_to)
    return await reports.general_report(start, end)


@router.get("/couriers", response_model=list[CourierStat])
async def courier_leaderboard(store: StatsStore = Depends(get_stats_store)):
    return await store.list_courier_stats()


@router.get("/couriers/{courier_id}", response_model=CourierStat)
async def courier_stats(courier_id: str, store: StatsStore = Depends(get_stats_store)):
    stat = await store.get_courier_stats(courier_id)
    if stat is None:
        raise NotFoundError("courier stats not found")
    return stat


@router.get("/summary", response_model=GeneralStats)
async def summary(store: StatsStore = Depends(get_stats_store)):
    return await store.get_general_stats()
