"""Application configuration via Pydantic Settings."""

from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rentwatch.core.exceptions import ConfigurationError


DEFAULT_TARGET_URLS = (
    "https://suumo.jp/jj/chintai/ichiran/FR301FC005/?mt=9999999&cn=9999999&ra=013&et=15"
    "&tc=0400101&tc=0400908&tc=0401102&shkr1=03&ar=030&bs=040&ct=35.0&shkr3=03&shkr2=03"
    "&mb=65&sngz=&rn=0265&rn=0280&shkr4=03&cb=0.0&ts=1&ts=2,"
    "https://myhome.nifty.com/rent/tokyo/koenji_st/?lines=tokyo:chuohonsen"
    "&stations=tokyo:asagaya,tokyo:kichijoji,tokyo:mitaka,tokyo:ogikubo,tokyo:tachikawa"
    "&r2=300000&r20=1,2&r6=15&r10=65&ex3=1&floors2=1&ex21=1&sort=recommend"
)


class Settings(BaseSettings):
    """Process settings loaded once from environment variables and `.env`.

    A single instance is built at startup and handed to every component
    that needs it; nothing below the entry point reads the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Persistence
    DATABASE_URL: str = ""

    @model_validator(mode="after")
    def fix_database_url(self) -> "Settings":
        """Hosted Postgres hands out postgres:// URLs but asyncpg needs postgresql+asyncpg://"""
        url = self.DATABASE_URL
        if url.startswith("postgresql://"):
            self.DATABASE_URL = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            self.DATABASE_URL = url.replace("postgres://", "postgresql+asyncpg://", 1)
        return self

    # Notifications (empty disables them)
    SLACK_WEBHOOK_URL: str = ""
    SLACK_INTERVAL_SECONDS: float = 1.0

    # Scraping
    # Comma or newline separated list of search result URLs
    TARGET_URLS: str = DEFAULT_TARGET_URLS
    PAGE_DELAY_SECONDS: float = 1.5
    URL_DELAY_SECONDS: float = 2.0
    MAX_PAGES: int = 10
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    FETCH_MAX_ATTEMPTS: int = 1
    RETRY_BASE_DELAY_SECONDS: float = 1.0

    # App
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    DEBUG: bool = False

    def get_target_urls(self) -> List[str]:
        """Parse TARGET_URLS into a list of URLs.

        Commas inside query strings are common (``r20=1,2``), so a comma only
        separates entries when it is followed by a new ``http`` URL.

        Returns:
            List of URL strings, empty if TARGET_URLS is not set
        """
        if not self.TARGET_URLS:
            return []
        urls: List[str] = []
        for line in self.TARGET_URLS.splitlines():
            for chunk in line.replace(",http", "\nhttp").splitlines():
                chunk = chunk.strip().strip(",")
                if chunk:
                    urls.append(chunk)
        return urls

    def require_database_url(self) -> str:
        """Return DATABASE_URL or raise if persistence is not configured.

        Raises:
            ConfigurationError: If DATABASE_URL is empty
        """
        if not self.DATABASE_URL:
            raise ConfigurationError(
                "DATABASE_URL is not set; persistence configuration is required"
            )
        return self.DATABASE_URL
