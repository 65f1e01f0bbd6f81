# tests/worker/test_base_worker.py
"""
Тесты для базового класса воркеров.
"""

from __future__ import annotations

from typing import List
from unittest.mock import AsyncMock

import pytest

from courier_mesh.common.exceptions import DependencyError
from courier_mesh.shared.events import Event, OrderCreated
from courier_mesh.worker.base import BaseWorker


class RecordingWorker(BaseWorker):
    """Воркер, запоминающий полученные события."""

    def __init__(self, event_bus=None, error: Exception | None = None) -> None:
        super().__init__(event_bus)
        self.events: list[Event] = []
        self.error = error

    @property
    def name(self) -> str:
        return "recording"

    @property
    def subscriptions(self) -> List[str]:
        return ["order_created", "order_completed"]

    async def handle_event(self, event: Event) -> None:
        if self.error is not None:
            raise self.error
        self.events.append(event)


class TestBaseWorker:
    @pytest.mark.asyncio
    async def test_start_subscribes_to_all_queues(self, mock_event_bus: AsyncMock) -> None:
        worker = RecordingWorker(mock_event_bus)

        await worker.start()

        assert worker.is_running
        queues = [c.args[0] for c in mock_event_bus.consume.call_args_list]
        assert queues == ["order_created", "order_completed"]

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, mock_event_bus: AsyncMock) -> None:
        worker = RecordingWorker(mock_event_bus)

        await worker.start()
        await worker.start()

        assert mock_event_bus.consume.await_count == 2

    @pytest.mark.asyncio
    async def test_start_without_bus(self) -> None:
        with pytest.raises(RuntimeError):
            await RecordingWorker().start()

    @pytest.mark.asyncio
    async def test_on_event_dispatches(self, mock_event_bus: AsyncMock) -> None:
        worker = RecordingWorker(mock_event_bus)
        await worker.start()
        event = OrderCreated(order_id="o1")

        await worker._on_event(event)

        assert worker.events == [event]

    @pytest.mark.asyncio
    async def test_stopped_worker_requeues(self, mock_event_bus: AsyncMock) -> None:
        worker = RecordingWorker(mock_event_bus)
        await worker.start()
        await worker.stop()

        with pytest.raises(DependencyError):
            await worker._on_event(OrderCreated(order_id="o1"))
        assert worker.events == []

    @pytest.mark.asyncio
    async def test_dependency_error_is_propagated(self, mock_event_bus: AsyncMock) -> None:
        worker = RecordingWorker(mock_event_bus, error=DependencyError("database unavailable"))
        await worker.start()

        with pytest.raises(DependencyError):
            await worker._on_event(OrderCreated(order_id="o1"))

    @pytest.mark.asyncio
    async def test_handler_bug_is_logged(self, mock_event_bus: AsyncMock) -> None:
        worker = RecordingWorker(mock_event_bus, error=KeyError("courier_id"))
        await worker.start()

        await worker._on_event(OrderCreated(order_id="o1"))
