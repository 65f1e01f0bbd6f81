from fastapi import Request

from courier_mesh.services.analytics_service.reports import ReportRepository
from courier_mesh.services.analytics_service.store import StatsStore


def get_stats_store(request: Request) -> StatsStore:
    return request.app.state.stats_store


def get_report_repository(request: Request) -> ReportRepository:
    return ReportRepository(request.app.state.db)
