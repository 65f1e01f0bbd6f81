# courier_mesh/shared/models/__init__.py
"""
Общие DTO и Pydantic-модели сервисов.
"""
