# ─────────────────────────────────────────────────────────────────────────────
# Service Registry — service name → proxy strategy
# ─────────────────────────────────────────────────────────────────────────────


import structlog

from gateway.exceptions import UnsupportedServiceError
from gateway.upstream.protocol import ProxyService
from gateway.upstream.services import (
    GoogleMapsService,
    OpenAIService,
    OpenWeatherService,
    UnsplashService,
)

logger = structlog.get_logger(__name__)


class ServiceRegistry:
    """Holds the proxy strategies the generic proxy may dispatch to.

    Built once at startup, stored in app.state, injected via Depends().
    """

    def __init__(self) -> None:
        self._services: dict[str, ProxyService] = {}

    def register(self, service: ProxyService) -> None:
        self._services[service.name] = service
        logger.debug("proxy_service_registered", service=service.name)

    def get(self, name: str) -> ProxyService:
        """Raises UnsupportedServiceError (400) for unknown names."""
        try:
            return self._services[name]
        except KeyError:
            raise UnsupportedServiceError(name) from None

    @property
    def names(self) -> list[str]:
        return list(self._services)


def build_default_registry() -> ServiceRegistry:
    registry = ServiceRegistry()
    for service in (OpenAIService(), GoogleMapsService(), OpenWeatherService(), UnsplashService()):
        registry.register(service)
    return registry
