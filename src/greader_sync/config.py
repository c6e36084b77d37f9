"""Configuration management for the Google Reader sync engine.

All configuration comes from environment variables. Uses pydantic-settings
for validation so missing or malformed credentials produce clear errors
at startup rather than cryptic failures in the middle of a sync cycle.
"""

from datetime import date, datetime, time, timedelta

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .providers import ProviderProfile, ProviderVariant, profile_for

MAX_STREAM_MESSAGES = 2000000


class Config(BaseSettings):
    """Engine configuration loaded from environment variables."""

    greader_url: str = Field(default="", alias="GREADER_URL")
    provider: ProviderVariant = Field(default=ProviderVariant.FRESHRSS, alias="GREADER_PROVIDER")
    username: str = Field(default="", alias="GREADER_USERNAME")
    password: SecretStr = Field(default=SecretStr(""), alias="GREADER_PASSWORD")
    account_id: int = Field(default=0, alias="GREADER_ACCOUNT_ID")
    timeout: float = Field(default=30.0, gt=0, alias="GREADER_TIMEOUT")
    batch_size: int = Field(default=100, alias="GREADER_BATCH_SIZE")
    unread_only: bool = Field(default=False, alias="GREADER_UNREAD_ONLY")
    intelligent_sync: bool = Field(default=True, alias="GREADER_INTELLIGENT_SYNC")
    global_threshold: float = Field(default=0.3, ge=0, le=1, alias="GREADER_GLOBAL_THRESHOLD")
    newer_than_days: int | None = Field(default=365, ge=0, alias="GREADER_NEWER_THAN_DAYS")
    edit_tag_batch: int = Field(default=200, gt=0, alias="GREADER_EDIT_TAG_BATCH")
    item_contents_batch: int | None = Field(default=None, gt=0, alias="GREADER_ITEM_CONTENTS_BATCH")
    server_host: str = Field(default="127.0.0.1", alias="MCP_SERVER_HOST")
    server_port: int = Field(default=8000, alias="MCP_SERVER_PORT")

    model_config = SettingsConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_account(self) -> "Config":
        profile = self.profile
        if not profile.fixed_base_url and not self.greader_url:
            raise ValueError(f"GREADER_URL is required for provider {self.provider.value}")
        if not profile.uses_oauth and not (self.username and self.password.get_secret_value()):
            raise ValueError(
                f"GREADER_USERNAME and GREADER_PASSWORD are required for provider {self.provider.value}"
            )
        return self

    @property
    def profile(self) -> ProviderProfile:
        return profile_for(self.provider)

    @property
    def target_stream_size(self) -> int:
        """Maximum number of messages fetched from one full stream."""
        return MAX_STREAM_MESSAGES if self.batch_size <= 0 else self.batch_size

    @property
    def contents_batch(self) -> int:
        return self.item_contents_batch or self.profile.item_contents_batch

    def newer_than(self, today: date | None = None) -> int | None:
        """Epoch seconds of local midnight ``newer_than_days`` ago, or None."""
        if not self.newer_than_days:
            return None
        day = (today or date.today()) - timedelta(days=self.newer_than_days)
        return int(datetime.combine(day, time.min).timestamp())


def load_config() -> Config:
    """Load and validate config from environment. Raises on missing required vars."""
    return Config()
