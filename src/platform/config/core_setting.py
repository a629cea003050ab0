import os
from pathlib import Path
from typing import List, Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Experience Booking Engine'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production
    SERVICE_NAME: str = 'booking-engine'
    DEPLOY_ENV: str = 'local_dev'  # prefix of every log line, with SERVICE_NAME

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []  # add your frontend URL here

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',')]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'experience_booking'
    POSTGRES_PORT: str = '5432'
    DATABASE_URL_OVERRIDE: str | None = None  # e.g. sqlite+aiosqlite:///./local.db

    # Connection pool (ignored by sqlite)
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}'
            f'@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Booking lifecycle
    BOOKING_PENDING_TTL_MINUTES: int = 15
    BOOKING_DEFAULT_CURRENCY: str = 'USD'

    @field_validator('BOOKING_PENDING_TTL_MINUTES')
    @classmethod
    def ensure_positive_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError('BOOKING_PENDING_TTL_MINUTES must be a positive integer')
        return v

    # Expiry reaper
    ENABLE_EXPIRY_REAPER: bool = False  # Run the reaper inside the API process
    EXPIRY_REAPER_INTERVAL_SECONDS: float = 30.0
    EXPIRY_REAPER_BATCH_SIZE: int = 100
    ORPHAN_LOCK_SWEEP_BATCH_SIZE: int = 500

    # VIP
    VIP_DEFAULT_DURATION_DAYS: int = 365

    # Notifier
    NOTIFIER_BACKEND: Literal['kafka', 'memory'] = 'memory'
    BOOKING_EVENTS_TOPIC: str = 'booking-lifecycle-events'

    # Kafka Configuration
    KAFKA_BOOTSTRAP_SERVERS: str = 'localhost:9092'
    KAFKA_SECURITY_PROTOCOL: str = 'PLAINTEXT'
    KAFKA_ACKS: str = 'all'
    KAFKA_ENABLE_IDEMPOTENCE: bool = True
    KAFKA_COMPRESSION_TYPE: str = 'gzip'
    KAFKA_LINGER_MS: int = 10
    KAFKA_PRODUCER_INSTANCE_ID: str = os.getenv(
        'KAFKA_PRODUCER_INSTANCE_ID', f'producer-{os.getpid()}'
    )

    @property
    def KAFKA_PRODUCER_CONFIG(self) -> dict:
        return {
            'bootstrap.servers': self.KAFKA_BOOTSTRAP_SERVERS,
            'security.protocol': self.KAFKA_SECURITY_PROTOCOL,
            'enable.idempotence': self.KAFKA_ENABLE_IDEMPOTENCE,
            'acks': self.KAFKA_ACKS,
            'compression.type': self.KAFKA_COMPRESSION_TYPE,
            'linger.ms': self.KAFKA_LINGER_MS,
            'client.id': self.KAFKA_PRODUCER_INSTANCE_ID,
        }

    # Payments gateway
    PAYMENTS_GATEWAY_BASE_URL: str = 'http://localhost:8100'
    PAYMENTS_GATEWAY_TIMEOUT_SECONDS: float = 10.0
    REFUND_CHECK_48H_WINDOW: bool = True

    # Rate source (display price conversion only)
    RATE_SOURCE_BASE_URL: str = 'http://localhost:8200'
    RATE_SOURCE_TIMEOUT_SECONDS: float = 5.0


settings = Settings()  # type: ignore
