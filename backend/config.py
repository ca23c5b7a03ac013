"""Centralized configuration: all env vars in one place."""

import os

# API keys the upstream adapters need, mapped to Settings attribute names.
REQUIRED_KEYS = {
    "OPENCAGE_KEY": "opencage_key",
    "OPENWEATHER_KEY": "openweather_key",
    "TIMEZONEDB_KEY": "timezonedb_key",
}


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")
        self.port: int = _int("PORT", 4000)

        # Upstream credentials
        self.opencage_key: str | None = os.getenv("OPENCAGE_KEY")
        self.openweather_key: str | None = os.getenv("OPENWEATHER_KEY")
        self.timezonedb_key: str | None = os.getenv("TIMEZONEDB_KEY")
        self.user_agent: str = os.getenv("USER_AGENT", "earth-explorer-app/1.0 (contact@example.com)")

        # Cache TTLs (seconds)
        self.cache_ttl_default: int = _int("CACHE_TTL_DEFAULT", 60 * 5)
        self.cache_ttl_geocode: int = _int("CACHE_TTL_GEOCODE", 60 * 30)
        self.cache_ttl_weather: int = _int("CACHE_TTL_WEATHER", 120)
        self.cache_ttl_timezone: int = _int("CACHE_TTL_TIMEZONE", 60 * 10)
        self.cache_ttl_wiki: int = _int("CACHE_TTL_WIKI", 60 * 60 * 6)
        self.cache_ttl_population: int = _int("CACHE_TTL_POPULATION", 60 * 60 * 6)
        self.cache_ttl_places: int = _int("CACHE_TTL_PLACES", 60 * 60 * 6)

        # Rate limiting: fixed window per client
        self.rate_limit_window_seconds: int = _int("RATE_LIMIT_WINDOW_SECONDS", 60)
        self.rate_limit_max: int = _int("RATE_LIMIT_MAX", 60)

        # Timeouts (seconds). The population fact query gets its own total bound.
        self.http_timeout_seconds: float = _float("HTTP_TIMEOUT_SECONDS", 10.0)
        self.population_timeout_seconds: float = _float("POPULATION_TIMEOUT_SECONDS", 10.0)

        # Globe altitude below which a click asks for state-level detail
        self.zoom_state_threshold: float = _float("ZOOM_STATE_THRESHOLD", 1.8)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return the names of API key env vars that are not set."""
        return [env_var for env_var, attr in REQUIRED_KEYS.items() if not getattr(self, attr)]


settings = Settings()
