# courier_mesh/services/delivery_service/__init__.py
"""
Delivery Service — расчёт стоимости доставки.
"""
