import pytest
import pytest_asyncio

from gbif_core.client import GbifClient
from gbif_core.config import (
    GbifSettings,
    LoggingSettings,
    RateLimitSettings,
    ResponseLimitSettings,
    Settings,
)
from gbif_core.log_context import LogContext

from .helpers import BASE_URL


@pytest.fixture
def gbif_settings():
    return GbifSettings(base_url=BASE_URL, retry_attempts=2, retry_delay_ms=0)


@pytest.fixture
def rate_limit_settings():
    # 0 disables the per-minute window
    return RateLimitSettings(max_requests_per_minute=0, max_concurrent_requests=4)


@pytest.fixture
def log():
    return LogContext(LoggingSettings(level="debug"), name="gbif_mcp.test")


@pytest.fixture
def settings(gbif_settings, rate_limit_settings):
    return Settings(
        gbif=gbif_settings,
        rate_limit=rate_limit_settings,
        response_limits=ResponseLimitSettings(),
        logging=LoggingSettings(level="debug"),
    )


@pytest_asyncio.fixture
async def client(gbif_settings, rate_limit_settings, log):
    gbif = GbifClient(gbif_settings, rate_limit_settings, log)
    yield gbif
    await gbif.aclose()
