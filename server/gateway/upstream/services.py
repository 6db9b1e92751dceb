# ─────────────────────────────────────────────────────────────────────────────
# Proxy Services — one strategy per supported upstream
# ─────────────────────────────────────────────────────────────────────────────


import copy
from typing import Any

from gateway.exceptions import EndpointNotFoundError, MethodNotAllowedError
from gateway.shaping import redact_maps_response, redact_openai_response
from gateway.upstream.protocol import ProxyRequestContext, UpstreamRequest


class BaseProxyService:
    """Shared request building. Subclasses set the URL, auth and sanitizing rules."""

    name: str = ""
    base_url: str = ""
    allowed_methods: frozenset[str] = frozenset({"GET", "POST"})

    def validate(self, method: str, endpoint: str) -> None:
        if method not in self.allowed_methods:
            allowed = ", ".join(sorted(self.allowed_methods))
            raise MethodNotAllowedError(f"Only {allowed} requests are allowed for this service")
        if not self.endpoint_allowed(endpoint):
            raise EndpointNotFoundError(f"Unsupported endpoint for service {self.name}: {endpoint}")

    def endpoint_allowed(self, endpoint: str) -> bool:
        return True

    def build_request(self, ctx: ProxyRequestContext, secret: str) -> UpstreamRequest:
        params = self.sanitize_params(dict(ctx.query_params))
        headers = dict(ctx.forward_headers)
        body = self.sanitize_body(copy.deepcopy(ctx.body)) if ctx.body is not None else None
        self.authorize(secret, params, headers)
        return UpstreamRequest(
            method=ctx.method,
            url=f"{self.base_url}/{ctx.endpoint}",
            params=params,
            headers=headers,
            json=body,
        )

    def sanitize_params(self, params: dict[str, str]) -> dict[str, str]:
        return params

    def sanitize_body(self, body: dict[str, Any]) -> dict[str, Any]:
        return body

    def authorize(self, secret: str, params: dict[str, str], headers: dict[str, str]) -> None:
        raise NotImplementedError

    def shape_response(self, payload: Any) -> Any:
        return payload


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


class OpenAIService(BaseProxyService):
    """Chat completions only; token and temperature caps keep spend bounded."""

    name = "openai"
    base_url = "https://api.openai.com/v1"
    endpoints: frozenset[str] = frozenset({"chat/completions"})

    default_model = "gpt-3.5-turbo"
    max_tokens_cap = 1000
    default_temperature = 0.7

    def endpoint_allowed(self, endpoint: str) -> bool:
        return endpoint in self.endpoints

    def sanitize_body(self, body: dict[str, Any]) -> dict[str, Any]:
        max_tokens = body.get("max_tokens")
        if not _is_number(max_tokens) or not max_tokens or max_tokens > self.max_tokens_cap:
            body["max_tokens"] = self.max_tokens_cap

        temperature = body.get("temperature")
        if not _is_number(temperature) or temperature > 1:
            body["temperature"] = self.default_temperature

        if not body.get("model"):
            body["model"] = self.default_model
        return body

    def authorize(self, secret: str, params: dict[str, str], headers: dict[str, str]) -> None:
        headers["Authorization"] = f"Bearer {secret}"
        headers["Content-Type"] = "application/json"

    def shape_response(self, payload: Any) -> Any:
        return redact_openai_response(payload)


class GoogleMapsService(BaseProxyService):
    """Places and Geocoding web services; the key rides as a query parameter."""

    name = "google_maps"
    base_url = "https://maps.googleapis.com/maps/api"
    endpoint_prefixes: tuple[str, ...] = ("place/", "geocode/")

    # Client-supplied attempts to swap in other credentials.
    _stripped = ("key", "signature")

    def endpoint_allowed(self, endpoint: str) -> bool:
        return endpoint.startswith(self.endpoint_prefixes)

    def sanitize_params(self, params: dict[str, str]) -> dict[str, str]:
        return {k: v for k, v in params.items() if k not in self._stripped}

    def sanitize_body(self, body: dict[str, Any]) -> dict[str, Any]:
        for field in self._stripped:
            body.pop(field, None)
        return body

    def authorize(self, secret: str, params: dict[str, str], headers: dict[str, str]) -> None:
        params["key"] = secret
        params["libraries"] = "places"

    def shape_response(self, payload: Any) -> Any:
        return redact_maps_response(payload)


class OpenWeatherService(BaseProxyService):
    """Current weather and forecast only; parameters are allow-listed."""

    name = "weather"
    base_url = "https://api.openweathermap.org/data/2.5"
    endpoints: frozenset[str] = frozenset({"weather", "forecast"})
    allowed_params: frozenset[str] = frozenset({"lat", "lon", "q", "units", "lang"})

    def endpoint_allowed(self, endpoint: str) -> bool:
        return endpoint in self.endpoints

    def sanitize_params(self, params: dict[str, str]) -> dict[str, str]:
        return {k: v for k, v in params.items() if k in self.allowed_params}

    def sanitize_body(self, body: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in body.items() if k in self.allowed_params}

    def authorize(self, secret: str, params: dict[str, str], headers: dict[str, str]) -> None:
        params["appid"] = secret


class UnsplashService(BaseProxyService):
    """Read-only photo lookups."""

    name = "unsplash"
    base_url = "https://api.unsplash.com/photos"
    allowed_methods = frozenset({"GET"})

    def sanitize_params(self, params: dict[str, str]) -> dict[str, str]:
        params.pop("client_id", None)
        return params

    def authorize(self, secret: str, params: dict[str, str], headers: dict[str, str]) -> None:
        headers["Authorization"] = f"Client-ID {secret}"
