# courier_mesh/worker/__init__.py
"""
Фоновые воркеры для обработки событий из RabbitMQ.
"""

from courier_mesh.worker.base import BaseWorker

__all__ = ["BaseWorker"]
