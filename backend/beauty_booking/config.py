# backend/beauty_booking/config.py

from decimal import Decimal
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/booking.db"
    redis_url: str = "redis://localhost:6379/0"

    # Platform service fee: base + percentage of price, capped
    service_fee_base: Decimal = Decimal("1.25")
    service_fee_percentage: Decimal = Decimal("3.6")
    service_fee_cap: Decimal = Decimal("8.00")

    # PENDING bookings with a paid deposit older than this are auto-declined
    stale_pending_hours: int = 48

    # CONFIRMED bookings still owing a balance this long after the start are auto-cancelled
    unpaid_balance_hours: int = 24

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative sqlite paths are anchored at the project root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
