from courier_mesh.common.constants import OrderStatus
from courier_mesh.common.exceptions import InvalidTransitionError


class OrderStateMachine:
    # created -> created допускается при снятии назначения с неназначенного заказа
    ALLOWED_TRANSITIONS = {
        OrderStatus.CREATED: [OrderStatus.CREATED, OrderStatus.ASSIGNED, OrderStatus.COMPLETED],
        OrderStatus.ASSIGNED: [OrderStatus.ASSIGNED, OrderStatus.CREATED, OrderStatus.COMPLETED],
        OrderStatus.COMPLETED: [],
    }

    @staticmethod
    def can_transition(current_status: str, new_status: str) -> bool:
        try:
            curr = OrderStatus(current_status)
            new = OrderStatus(new_status)
            return new in OrderStateMachine.ALLOWED_TRANSITIONS.get(curr, [])
        except ValueError:
            return False

    @staticmethod
    def ensure_transition(current_status: str, new_status: str) -> None:
        """Поднимает InvalidTransitionError, если переход запрещён."""
        if not OrderStateMachine.can_transition(current_status, new_status):
            raise InvalidTransitionError(str(current_status), str(new_status))
