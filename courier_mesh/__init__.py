# courier_mesh/__init__.py
"""
Courier Mesh — платформа доставки: заказы, курьеры, расчёт стоимости,
трекинг, уведомления и агрегированная аналитика.
"""

__version__ = "1.0.0"
