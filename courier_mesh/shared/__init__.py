# courier_mesh/shared/__init__.py
"""
Общий код между сервисами.

Модули:
- events: схемы событий RabbitMQ и их кодек
- models: общие DTO и Pydantic-модели
"""

__all__: list[str] = []
