# courier_mesh/config/__init__.py
"""
Модуль конфигурации.
Экспортирует настройки приложения.
"""

from courier_mesh.config.loader import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
