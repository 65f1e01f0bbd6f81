# courier_mesh/services/courier_simulator/__init__.py
"""
Симулятор курьера: проводит заказ через весь жизненный цикл по HTTP API сервисов.
"""

from courier_mesh.services.courier_simulator.client import CourierSimulator, Route, SimulationResult

__all__ = ["CourierSimulator", "Route", "SimulationResult"]
