"""ViaCEP postal-code lookup."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import httpx

from dispatch.config import PostalConfig
from dispatch.errors import NetworkOrServiceError, ValidationFailedError

logger = logging.getLogger(__name__)


@dataclass
class PostalAddress:
    postal_code: str
    found: bool
    street: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""

    @property
    def full_address(self) -> str:
        return ", ".join(p for p in (self.street, self.neighborhood, self.city, self.state) if p)


def clean_postal_code(code: str) -> str:
    digits = re.sub(r"\D", "", code or "")
    if len(digits) != 8:
        raise ValidationFailedError("Postal code must have 8 digits")
    return digits


async def lookup_postal_code(
    code: str, config: PostalConfig, transport: httpx.AsyncBaseTransport | None = None,
) -> PostalAddress:
    """Resolve a CEP. Unknown codes come back with ``found=False``."""
    digits = clean_postal_code(code)
    try:
        async with httpx.AsyncClient(timeout=config.timeout_seconds, transport=transport) as client:
            resp = await client.get(f"{config.base_url}/{digits}/json/")
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("Postal code lookup failed for %s", digits)
        raise NetworkOrServiceError("Postal code service unavailable") from exc

    if data.get("erro"):
        return PostalAddress(postal_code=digits, found=False)
    return PostalAddress(
        postal_code=digits,
        found=True,
        street=data.get("logradouro") or "",
        neighborhood=data.get("bairro") or "",
        city=data.get("localidade") or "",
        state=data.get("uf") or "",
    )
