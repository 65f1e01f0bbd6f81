import math

from courier_mesh.common.exceptions import InvalidInput

EARTH_RADIUS_KM = 6371.0


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Вычисляет расстояние между двумя точками (в км) по формуле Haversine.
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)
    # Для антиподов погрешность может дать a чуть больше 1
    a = min(1.0, max(0.0, a))

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def calculate_volume(length: float, width: float, height: float) -> float:
    """Объём посылки в кубических метрах."""
    return length * width * height


def ensure_non_negative(**values: float) -> None:
    """
    Проверяет физические параметры посылки.

    Raises:
        InvalidInput: хотя бы одно значение отрицательное, бесконечное или не число
    """
    for name, value in values.items():
        if value is None or not math.isfinite(value) or value < 0:
            raise InvalidInput(f"{name} must be a non-negative number")


def move_towards(
    lat: float,
    lon: float,
    target_lat: float,
    target_lon: float,
    step_km: float,
) -> tuple[float, float]:
    """
    Сдвигает точку к цели на step_km по прямой (линейная интерполяция координат).
    Если до цели меньше шага, возвращает цель.
    """
    remaining = calculate_distance(lat, lon, target_lat, target_lon)
    if remaining <= step_km or remaining == 0:
        return target_lat, target_lon
    fraction = step_km / remaining
    return (
        lat + (target_lat - lat) * fraction,
        lon + (target_lon - lon) * fraction,
    )
