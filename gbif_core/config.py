# =============================================================================
# gbif_core/config.py  —  Settings Loaded From the Environment
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads every tunable of the server from environment variables into one
#   pydantic-settings class per concern.  main.py calls load_dotenv() first,
#   so a local `.env` file works the same as exported variables.
#
# VARIABLES (all optional):
#   GBIF_BASE_URL, GBIF_USERNAME, GBIF_PASSWORD, GBIF_USER_AGENT,
#   GBIF_TIMEOUT (ms), GBIF_RETRY_ATTEMPTS, GBIF_RETRY_DELAY (ms)
#   RATE_LIMIT_MAX_REQUESTS (per minute), RATE_LIMIT_CONCURRENT,
#   RATE_LIMIT_BACKOFF_MULTIPLIER, RATE_LIMIT_MAX_BACKOFF (ms)
#   RESPONSE_MAX_SIZE_KB, RESPONSE_WARN_SIZE_KB,
#   RESPONSE_ENABLE_TRUNCATION, RESPONSE_ENABLE_SIZE_LOGGING
#   LOG_LEVEL (error|warn|info|debug), LOG_FORMAT (simple|json),
#   LOG_MASK_SENSITIVE
#   SERVER_NAME, SERVER_VERSION, SERVER_DESCRIPTION
#
# Empty variables count as unset.  Malformed values surface as ConfigError
# from load_settings(), before the server starts.
# =============================================================================

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gbif_core.errors import ConfigError

LogLevel = Literal["error", "warn", "info", "debug"]
LogFormat = Literal["simple", "json"]


def _settings_config(prefix: str) -> SettingsConfigDict:
    return SettingsConfigDict(
        env_prefix=prefix,
        case_sensitive=False,
        env_ignore_empty=True,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class GbifSettings(BaseSettings):
    model_config = _settings_config("GBIF_")

    base_url: str = "https://api.gbif.org/v1"
    username: Optional[str] = None
    password: Optional[str] = None
    user_agent: str = "GBIF-MCP-Server/1.0.0"
    timeout_ms: int = Field(30000, ge=0, validation_alias="GBIF_TIMEOUT")
    retry_attempts: int = Field(3, ge=0, validation_alias="GBIF_RETRY_ATTEMPTS")
    retry_delay_ms: int = Field(1000, ge=0, validation_alias="GBIF_RETRY_DELAY")

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"must be an http(s) URL, got {value!r}")
        return value.rstrip("/")

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


class RateLimitSettings(BaseSettings):
    model_config = _settings_config("RATE_LIMIT_")

    # 0 disables the per-minute window
    max_requests_per_minute: int = Field(100, ge=0, validation_alias="RATE_LIMIT_MAX_REQUESTS")
    max_concurrent_requests: int = Field(10, ge=1, validation_alias="RATE_LIMIT_CONCURRENT")
    backoff_multiplier: float = Field(2.0, ge=1.0)
    max_backoff_ms: int = Field(60000, ge=0, validation_alias="RATE_LIMIT_MAX_BACKOFF")


class ResponseLimitSettings(BaseSettings):
    model_config = _settings_config("RESPONSE_")

    max_size_kb: int = Field(250, ge=0)
    warn_size_kb: int = Field(200, ge=0)
    enable_truncation: bool = True
    enable_size_logging: bool = True

    @property
    def max_size_bytes(self) -> int:
        return self.max_size_kb * 1024

    @property
    def warn_size_bytes(self) -> int:
        return self.warn_size_kb * 1024


class LoggingSettings(BaseSettings):
    model_config = _settings_config("LOG_")

    level: LogLevel = "info"
    format: LogFormat = "simple"
    mask_sensitive: bool = True

    @field_validator("level", "format", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class ServerSettings(BaseSettings):
    model_config = _settings_config("SERVER_")

    name: str = "gbif-mcp-server"
    version: str = "1.0.0"
    description: str = "MCP server for GBIF biodiversity data"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    gbif: GbifSettings = Field(default_factory=GbifSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    response_limits: ResponseLimitSettings = Field(default_factory=ResponseLimitSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


# =============================================================================
# PUBLIC API: load_settings
# =============================================================================
def load_settings() -> Settings:
    """Build Settings from the process environment.

    Raises:
        ConfigError: if a variable is present but malformed.
    """
    try:
        return Settings(
            gbif=GbifSettings(),
            rate_limit=RateLimitSettings(),
            response_limits=ResponseLimitSettings(),
            logging=LoggingSettings(),
            server=ServerSettings(),
        )
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigError(f"Invalid {exc.title} configuration: {problems}") from None
