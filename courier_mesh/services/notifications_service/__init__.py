# courier_mesh/services/notifications_service/__init__.py
"""
Notifications Service — отправка уведомлений получателям заказов.
"""
