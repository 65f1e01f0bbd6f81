# courier_mesh/services/analytics_service/__init__.py
"""
Analytics Service — агрегаты по событиям жизненного цикла заказа и отчёты.
"""
