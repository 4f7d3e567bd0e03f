"""
Configuration for the App Discovery backend.

Settings come from configs/.env (loaded over the process environment) and
plain environment variables. Crawl and match delays, thresholds and table
names all live here so tests can install a Config with zero delays.
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default) not in {"0", "false", "False"}


class Config:
    """
    Application configuration loaded from environment variables.

    All configuration is read from configs/.env file or environment variables.
    See configs/.env.example for documentation of all settings.
    """

    def __init__(self, env_path: Optional[Path] = None):
        """
        Initialize configuration from environment.

        Args:
            env_path: Path to .env file (default: configs/.env)
        """
        if env_path is None:
            env_path = Path("configs/.env")

        load_dotenv(dotenv_path=env_path, override=True)

        # === Supabase Configuration ===
        self.supabase_enabled: bool = _flag("SUPABASE_ENABLED", "1")
        self.supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
        self.supabase_service_role_key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.apps_table: str = os.getenv("APPS_TABLE", "apps")
        self.sessions_table: str = os.getenv("SESSIONS_TABLE", "import_sessions")
        self.match_attempts_table: str = os.getenv("MATCH_ATTEMPTS_TABLE", "itunes_match_attempts")
        self.categories_table: str = os.getenv("CATEGORIES_TABLE", "categories")
        self.screenshots_table: str = os.getenv("SCREENSHOTS_TABLE", "screenshots")

        # === Source Site / Crawler Configuration ===
        self.source_base_url: str = os.getenv("SOURCE_BASE_URL", "https://www.macupdate.com").rstrip("/")
        self.user_agent: str = os.getenv(
            "USER_AGENT",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        )
        self.crawl_delay_ms: int = int(os.getenv("CRAWL_DELAY_MS", "2000"))
        self.page_timeout_s: float = float(os.getenv("PAGE_TIMEOUT_S", "10"))
        self.detail_timeout_s: float = float(os.getenv("DETAIL_TIMEOUT_S", "30"))
        self.fetch_max_retries: int = int(os.getenv("FETCH_MAX_RETRIES", "1"))
        self.per_page_limit: int = int(os.getenv("CRAWL_PER_PAGE_LIMIT", "20"))
        self.page_count: int = int(os.getenv("CRAWL_PAGE_COUNT", "1"))
        self.min_page_yield: int = int(os.getenv("MIN_PAGE_YIELD", "5"))

        # === iTunes Search Configuration ===
        self.itunes_search_url: str = os.getenv("ITUNES_SEARCH_URL", "https://itunes.apple.com/search")
        self.itunes_country: str = os.getenv("ITUNES_COUNTRY", "us")
        self.itunes_result_limit: int = int(os.getenv("ITUNES_RESULT_LIMIT", "10"))
        self.itunes_timeout_s: float = float(os.getenv("ITUNES_TIMEOUT_S", "10"))
        self.match_delay_ms: int = int(os.getenv("MATCH_DELAY_MS", "1000"))
        self.match_threshold: float = float(os.getenv("MATCH_THRESHOLD", "0.8"))
        self.auto_apply_threshold: float = float(os.getenv("AUTO_APPLY_THRESHOLD", "0.8"))

        # === Logging Configuration ===
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: Path = Path(os.getenv("LOG_DIR", "logs"))
        self.error_log_table: str = os.getenv("ERROR_LOG_TABLE", "error_logs")
        self.error_log_fallback_dir: Path = Path(os.getenv("ERROR_LOG_FALLBACK_DIR", "logs/errors"))

    def validate(self) -> None:
        """
        Validate required configuration is present.

        Raises:
            ValueError: If required configuration is missing or invalid
        """
        errors = []

        if self.supabase_enabled:
            if not self.supabase_url:
                errors.append("SUPABASE_URL is required when Supabase is enabled")
            if not self.supabase_service_role_key:
                errors.append("SUPABASE_SERVICE_ROLE_KEY is required when Supabase is enabled")

        if not self.source_base_url.startswith("https://"):
            errors.append(f"SOURCE_BASE_URL must be an https URL, got {self.source_base_url}")

        for name, value in (
            ("CRAWL_DELAY_MS", self.crawl_delay_ms),
            ("PAGE_TIMEOUT_S", self.page_timeout_s),
            ("DETAIL_TIMEOUT_S", self.detail_timeout_s),
            ("CRAWL_PER_PAGE_LIMIT", self.per_page_limit),
            ("CRAWL_PAGE_COUNT", self.page_count),
            ("ITUNES_RESULT_LIMIT", self.itunes_result_limit),
            ("ITUNES_TIMEOUT_S", self.itunes_timeout_s),
        ):
            if value <= 0:
                errors.append(f"{name} must be positive, got {value}")

        if self.fetch_max_retries < 0:
            errors.append(f"FETCH_MAX_RETRIES must be non-negative, got {self.fetch_max_retries}")

        if self.min_page_yield < 0:
            errors.append(f"MIN_PAGE_YIELD must be non-negative, got {self.min_page_yield}")

        if self.match_delay_ms < 0:
            errors.append(f"MATCH_DELAY_MS must be non-negative, got {self.match_delay_ms}")
        elif self.match_delay_ms >= self.crawl_delay_ms:
            errors.append(
                f"MATCH_DELAY_MS ({self.match_delay_ms}) must be smaller than CRAWL_DELAY_MS ({self.crawl_delay_ms})"
            )

        for name, value in (
            ("MATCH_THRESHOLD", self.match_threshold),
            ("AUTO_APPLY_THRESHOLD", self.auto_apply_threshold),
        ):
            if not 0.0 <= value <= 1.0:
                errors.append(f"{name} must be between 0 and 1, got {value}")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    def __repr__(self) -> str:
        """Return string representation of config (without secrets)."""
        return (
            f"Config(\n"
            f"  supabase_enabled={self.supabase_enabled},\n"
            f"  supabase_url={self.supabase_url or 'NOT SET'},\n"
            f"  supabase_service_role_key={'***' if self.supabase_service_role_key else 'NOT SET'},\n"
            f"  source_base_url={self.source_base_url},\n"
            f"  crawl_delay_ms={self.crawl_delay_ms},\n"
            f"  match_delay_ms={self.match_delay_ms},\n"
            f"  match_threshold={self.match_threshold},\n"
            f"  log_level={self.log_level}\n"
            f")"
        )


# Global configuration instance (lazy-loaded)
_config: Optional[Config] = None


def get_config(env_path: Optional[Path] = None) -> Config:
    """
    Get the global configuration instance.

    Args:
        env_path: Optional path to .env file (only used on first call)

    Returns:
        Global Config instance

    Example:
        >>> config = get_config()
        >>> print(config.crawl_delay_ms)
    """
    global _config
    if _config is None:
        _config = Config(env_path=env_path)
    return _config


def validate_config(env_path: Optional[Path] = None) -> None:
    """
    Validate configuration and raise error if invalid.

    Called at CLI startup to fail fast on a bad environment.

    Args:
        env_path: Optional path to .env file

    Raises:
        ValueError: If configuration is invalid
    """
    config = get_config(env_path=env_path)
    config.validate()
