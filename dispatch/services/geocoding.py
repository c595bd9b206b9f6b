"""Nominatim geocoding client.

Forward lookups try the full address first and fall back to a coarser
"city, state" query. Every request to the service goes through one lock
and is spaced at least ``min_interval_seconds`` after the previous one.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass

import httpx

from dispatch.config import GeocodingConfig
from dispatch.errors import NetworkOrServiceError

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

STATE_ABBREVIATIONS = {
    "Acre": "AC",
    "Alagoas": "AL",
    "Amapá": "AP",
    "Amazonas": "AM",
    "Bahia": "BA",
    "Ceará": "CE",
    "Distrito Federal": "DF",
    "Espírito Santo": "ES",
    "Goiás": "GO",
    "Maranhão": "MA",
    "Mato Grosso": "MT",
    "Mato Grosso do Sul": "MS",
    "Minas Gerais": "MG",
    "Pará": "PA",
    "Paraíba": "PB",
    "Paraná": "PR",
    "Pernambuco": "PE",
    "Piauí": "PI",
    "Rio de Janeiro": "RJ",
    "Rio Grande do Norte": "RN",
    "Rio Grande do Sul": "RS",
    "Rondônia": "RO",
    "Roraima": "RR",
    "Santa Catarina": "SC",
    "São Paulo": "SP",
    "Sergipe": "SE",
    "Tocantins": "TO",
}


def state_abbreviation(state_name: str) -> str:
    """Map a state name to its UF code; unknown names keep their first two letters."""
    return STATE_ABBREVIATIONS.get(state_name, state_name[:2].upper())


@dataclass
class Coordinates:
    lat: float
    lon: float


@dataclass
class Place:
    city: str
    state: str


class Geocoder:
    """Serialized client for a Nominatim-compatible service."""

    def __init__(self, config: GeocodingConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport
        self._lock = asyncio.Lock()
        self._last_request: float | None = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            headers={
                "User-Agent": self.config.user_agent,
                "Accept-Language": self.config.accept_language,
            },
            transport=self._transport,
        )

    async def _get(self, path: str, params: dict):
        async with self._lock:
            if self._last_request is not None:
                wait = self.config.min_interval_seconds - (time.monotonic() - self._last_request)
                if wait > 0:
                    await asyncio.sleep(wait)
            try:
                async with self._client() as client:
                    resp = await client.get(path, params={"format": "json", **params})
                    resp.raise_for_status()
                    return resp.json()
            except (httpx.HTTPError, ValueError) as exc:
                logger.exception("Geocoding request to %s failed", path)
                raise NetworkOrServiceError("Geocoding service unavailable") from exc
            finally:
                self._last_request = time.monotonic()

    async def search(self, query: str, country_code: str | None = None) -> list[dict]:
        params = {"q": query}
        if country_code:
            params["countrycodes"] = country_code
        data = await self._get("/search", params)
        return data if isinstance(data, list) else []

    async def _first_match(self, query: str, country_code: str | None = None) -> Coordinates | None:
        for candidate in await self.search(query, country_code):
            try:
                return Coordinates(lat=float(candidate["lat"]), lon=float(candidate["lon"]))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed geocoding candidate for %r", query)
        return None

    async def geocode(self, full_address: str, fallback: str | None = None) -> Coordinates | None:
        """Full address first, then the ``fallback`` region. No match at either step returns None."""
        coords = await self._first_match(full_address)
        if coords is not None:
            return coords
        if fallback:
            logger.info("Geocoding fallback triggered for %r", fallback)
            return await self._first_match(fallback)
        return None

    async def locate(self, query: str) -> Coordinates | None:
        """Single lookup restricted to the configured country (agent map search)."""
        return await self._first_match(query, self.config.country_code)

    async def reverse(self, lat: float, lon: float) -> Place | None:
        data = await self._get("/reverse", {"lat": lat, "lon": lon, "addressdetails": 1})
        address = data.get("address") if isinstance(data, dict) else None
        if not address:
            return None
        city = (
            address.get("city")
            or address.get("town")
            or address.get("municipality")
            or address.get("village")
            or ""
        )
        return Place(city=city, state=state_abbreviation(address.get("state", "")))


# ── Distance ─────────────────────────────────────────────

def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass
class AgentDistance:
    agent: object
    distance_km: float


def nearest_agents(agents, lat: float, lon: float) -> list[AgentDistance]:
    """Agents with coordinates, closest first. Agents without a position are skipped."""
    ranked = [
        AgentDistance(agent=a, distance_km=haversine_km(lat, lon, a.latitude, a.longitude))
        for a in agents
        if a.latitude is not None and a.longitude is not None
    ]
    ranked.sort(key=lambda d: d.distance_km)
    return ranked
