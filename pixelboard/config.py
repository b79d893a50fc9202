from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Board settings loaded once from env/.env (pydantic v2 style)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    host: str = "0.0.0.0"
    port: int = 8080

    grid_rows: int = Field(default=20, gt=0)
    grid_cols: int = Field(default=20, gt=0)

    # Liveness sweep cadence and the silence window after which a session is evicted.
    liveness_interval_sec: float = Field(default=30.0, gt=0)
    session_timeout_sec: float = Field(default=35.0, gt=0)

    send_timeout_sec: float = Field(default=5.0, gt=0)
    receive_timeout_sec: float = Field(default=180.0, gt=0)
    outbox_max_size: int = Field(default=256, gt=0)

    color_max_attempts: int = Field(default=20, ge=1)

    claim_rate_per_second: int = Field(default=10, gt=0)
    claim_rate_per_minute: int = Field(default=300, gt=0)
    rate_limit_block_sec: int = Field(default=5, ge=0)
    rate_limit_cleanup_interval_min: int = 5

    allowed_origins: str = "*"
    log_file: str = ""

    @field_validator("allowed_origins")
    @classmethod
    def _strip_origins(cls, value: str) -> str:
        return ",".join(o.strip() for o in value.split(",") if o.strip()) or "*"

    @property
    def origins(self) -> list[str]:
        return self.allowed_origins.split(",")


def get_settings() -> Settings:
    return Settings()
