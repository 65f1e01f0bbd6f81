# courier_mesh/services/tracking_service/__init__.py
"""
Tracking Service — последние позиции и статусы курьеров.

Обеспечивает:
- Хранение последнего состояния курьера в Redis
- Публикацию обновлений в Redis Pub/Sub
- Трансляцию обновлений WebSocket-клиентам
"""
