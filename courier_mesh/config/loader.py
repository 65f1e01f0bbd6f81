# courier_mesh/config/loader.py
"""
Загрузчик конфигурации проекта.
Источник значений по умолчанию — config/config.json.
Любое значение переопределяется одноимённой переменной окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "courier_mesh"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    COMPONENT_MODE: str = "all"


class DeploymentSettings(BaseModel):
    """Адреса и порты сервисов."""
    SERVICE_HOST: str = "0.0.0.0"
    ORDERS_SERVICE_PORT: int = 8080
    DELIVERY_SERVICE_PORT: int = 8081
    ANALYTICS_SERVICE_PORT: int = 8082
    TRACKING_SERVICE_PORT: int = 8083
    NOTIFICATIONS_SERVICE_PORT: int = 8084


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "colored"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "delivery"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: float = 10.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "courier_mesh"
    REDIS_MAX_CONNECTIONS: int = 50

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class RabbitMQSettings(BaseModel):
    """Настройки RabbitMQ."""
    RABBITMQ_URL: str = ""
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    RABBITMQ_PREFETCH_COUNT: int = 1
    RABBITMQ_PUBLISH_TIMEOUT: float = 5.0

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к RabbitMQ (RABBITMQ_URL имеет приоритет)."""
        if self.RABBITMQ_URL:
            return self.RABBITMQ_URL
        return (
            f"amqp://{self.RABBITMQ_USER}:{self.RABBITMQ_PASSWORD}"
            f"@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}{self.RABBITMQ_VHOST}"
        )


class DeliverySettings(BaseModel):
    """Тарифы расчёта стоимости доставки."""
    BASE_FEE: float = 50.0
    DISTANCE_RATE: float = 5.0
    WEIGHT_RATE: float = 2.0
    VOLUME_RATE: float = 3.0
    URGENCY_FACTOR: float = 1.5
    CURRENCY: str = "USD"


class OutboxSettings(BaseModel):
    """Настройки ретранслятора outbox."""
    OUTBOX_POLL_INTERVAL: float = 1.0
    OUTBOX_BATCH_SIZE: int = 50
    OUTBOX_MAX_ATTEMPTS: int = 10


class ServicesSettings(BaseModel):
    """Адреса соседних сервисов для HTTP-вызовов."""
    ORDERS_URL: str = "http://localhost:8080"
    DELIVERY_URL: str = "http://localhost:8081"
    TRACKING_URL: str = "http://localhost:8083"
    HTTP_TIMEOUT: float = 5.0


class SmtpSettings(BaseModel):
    """Настройки отправки email."""
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_FROM: str = "noreply@courier-mesh.local"
    SMTP_TIMEOUT: float = 10.0


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    rabbitmq: RabbitMQSettings = Field(default_factory=RabbitMQSettings)
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)
    outbox: OutboxSettings = Field(default_factory=OutboxSettings)
    services: ServicesSettings = Field(default_factory=ServicesSettings)
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Каждое поле секции переопределяется одноимённой переменной окружения.
        """
        config_data = load_config_json()
        filtered_data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        def section(model: type[BaseModel]) -> BaseModel:
            values: dict[str, Any] = {}
            for name in model.model_fields:
                env_value = os.getenv(name)
                if env_value is not None:
                    values[name] = env_value
                elif name in filtered_data:
                    values[name] = filtered_data[name]
            return model(**values)

        return cls(
            system=section(SystemSettings),
            deployment=section(DeploymentSettings),
            logging=section(LoggingSettings),
            database=section(DatabaseSettings),
            redis=section(RedisSettings),
            rabbitmq=section(RabbitMQSettings),
            delivery=section(DeliverySettings),
            outbox=section(OutboxSettings),
            services=section(ServicesSettings),
            smtp=section(SmtpSettings),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает настройки приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


settings = get_settings()
