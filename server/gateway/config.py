# ─────────────────────────────────────────────────────────────────────────────
# Settings — Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from collections.abc import Iterator, Mapping
from functools import lru_cache
from types import MappingProxyType

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from gateway.exceptions import ServerMisconfigurationError

# Upstream services the gateway holds credentials for.
SERVICE_NAMES: tuple[str, ...] = ("openai", "google_maps", "weather", "unsplash")


class UpstreamCredentials(Mapping[str, str]):
    """Read-only service → secret mapping, fixed at startup.

    Services whose key is unset are simply absent; asking for them through
    require() is a server misconfiguration (500), not a client error.
    """

    def __init__(self, secrets: Mapping[str, str]) -> None:
        self._secrets = MappingProxyType({k: v for k, v in secrets.items() if v})

    def __getitem__(self, service: str) -> str:
        return self._secrets[service]

    def __iter__(self) -> Iterator[str]:
        return iter(self._secrets)

    def __len__(self) -> int:
        return len(self._secrets)

    def __repr__(self) -> str:
        # Never print the secrets themselves.
        return f"UpstreamCredentials(configured={sorted(self._secrets)})"

    def require(self, service: str) -> str:
        """Return the secret for service or raise ServerMisconfigurationError."""
        secret = self._secrets.get(service)
        if not secret:
            raise ServerMisconfigurationError(service)
        return secret


class Settings(BaseSettings):
    """Gateway configuration sourced from environment variables.

    Uses pydantic-settings v2 (separate package from pydantic).
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    port: int = 8080

    # ── Upstream credentials ─────────────────────────────────────────────────
    # SecretStr keeps keys out of logs, repr() and model_dump().
    # Empty string = service not configured (requests for it return 500).
    openai_api_key: SecretStr = SecretStr("")
    google_maps_api_key: SecretStr = SecretStr("")
    weather_api_key: SecretStr = SecretStr("")
    unsplash_api_key: SecretStr = SecretStr("")

    # ── Security ─────────────────────────────────────────────────────────────
    # Optional shared key for callers of the gateway itself. Empty = disabled.
    api_key: SecretStr = SecretStr("")

    # Comma-separated origins for CORS. "*" allows every origin; narrow this
    # to the app's domain in production.
    allowed_origins: str = "*"

    # Coarse per-IP limit on every route (slowapi format). The per-endpoint
    # windows in gateway.throttle sit behind it.
    edge_rate_limit: str = "300/minute"

    # ── Upstream ─────────────────────────────────────────────────────────────
    upstream_timeout_seconds: float = 10.0

    # ── Feature flags ────────────────────────────────────────────────────────
    enable_location_service: bool = True
    enable_weather_service: bool = True
    enable_api_proxy: bool = True

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True

    def upstream_credentials(self) -> UpstreamCredentials:
        """Snapshot the upstream keys into an immutable mapping."""
        return UpstreamCredentials(
            {
                "openai": self.openai_api_key.get_secret_value(),
                "google_maps": self.google_maps_api_key.get_secret_value(),
                "weather": self.weather_api_key.get_secret_value(),
                "unsplash": self.unsplash_api_key.get_secret_value(),
            }
        )


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
