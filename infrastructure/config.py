"""Application settings read from the environment or a .env file"""
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings

from domain.value_objects import FeeConfig


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Auth
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Seeded administrator
    admin_username: str = "admin"
    admin_password: str = "admin123"
    admin_email: str = "admin@example.com"

    # Pricing
    service_fee_rate: Decimal = Decimal("0.10")
    cleaning_fee: Decimal = Decimal("25")
    tax_rate: Decimal = Decimal("0.08")
    currency: str = "USD"

    # When true, cancelled bookings keep their dates blocked
    cancelled_reservations_block_dates: bool = False

    log_level: str = "INFO"

    def fee_config(self) -> FeeConfig:
        return FeeConfig(
            service_fee_rate=self.service_fee_rate,
            cleaning_fee=self.cleaning_fee,
            tax_rate=self.tax_rate,
            currency=self.currency,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
