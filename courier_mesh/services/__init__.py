# courier_mesh/services/__init__.py
"""
HTTP-сервисы платформы и фоновые потребители.

- orders_service: жизненный цикл заказа и курьеры
- delivery_service: расчёт стоимости доставки
- analytics_service: агрегаты и отчёты
- tracking_service: последние позиции курьеров и рассылка по WebSocket
- notifications_service: отправка уведомлений
- courier_simulator: клиент-симулятор курьера
"""
