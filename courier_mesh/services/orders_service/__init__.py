# courier_mesh/services/orders_service/__init__.py
"""
Orders Service — жизненный цикл заказа и регистрация курьеров.
"""
