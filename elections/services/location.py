"""Client address helpers and best-effort IP geolocation."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from fastapi import Request

from elections.core.config import Settings

logger = logging.getLogger(__name__)

_LOCAL_ADDRESSES = {"127.0.0.1", "::1", "localhost", "unknown"}
LOCAL_LOCATION = "Local Development"


@dataclass(slots=True, frozen=True)
class ClientInfo:
    """Caller metadata recorded alongside submissions and security events."""

    ip_address: str | None = None
    user_agent: str | None = None
    location: str | None = None


def client_ip(request: Request, *, trust_forwarded: bool = False) -> str:
    """Resolve the caller address.

    ``X-Forwarded-For`` and ``X-Real-IP`` are only read when ``trust_forwarded``
    is set, i.e. when the service runs behind a proxy that overwrites them.
    Otherwise the socket peer is used.
    """
    if trust_forwarded:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded and forwarded.strip():
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip and real_ip.strip():
            return real_ip.strip()
    if request.client and request.client.host:
        return "127.0.0.1" if request.client.host == "::1" else request.client.host
    return "unknown"


def user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or "unknown"


class LocationService:
    """Resolve a human readable location for an IP address.

    ``lookup_url`` is a template containing ``{ip}``, for example
    ``https://ipinfo.io/{ip}/json``. Without one only local addresses resolve.
    """

    def __init__(
        self,
        lookup_url: str | None,
        *,
        timeout: float = 2.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._lookup_url = lookup_url
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, *, client: httpx.Client | None = None) -> "LocationService":
        return cls(settings.geoip_url, timeout=settings.geoip_timeout_seconds, client=client)

    def lookup(self, ip: str) -> str | None:
        if ip in _LOCAL_ADDRESSES:
            return LOCAL_LOCATION
        if not self._lookup_url:
            return None

        url = self._lookup_url.format(ip=ip)
        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self._timeout)
            else:
                with httpx.Client() as client:
                    response = client.get(url, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("location lookup failed for %s: %s", ip, exc)
            return None

        if not isinstance(data, dict):
            return None
        parts = [str(data[key]) for key in ("city", "region", "country") if data.get(key)]
        return ", ".join(parts) or None


__all__ = ["ClientInfo", "LOCAL_LOCATION", "LocationService", "client_ip", "user_agent"]
