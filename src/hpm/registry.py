"""Remote package registry client.

Queries the npm registry search endpoint for packages tagged with a
discovery topic. Results keep the registry's own ranking order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import httpx
import structlog
from pydantic import ValidationError

from hpm.errors import TransportError
from hpm.models.packages import PackageDescriptor

if TYPE_CHECKING:
    from hpm.config import RegistrySettings

log = structlog.get_logger()

_USER_AGENT = "hpm/0.1"


class PackageRegistry(Protocol):
    async def search(self, topic: str) -> list[PackageDescriptor]: ...


def build_http_client(settings: RegistrySettings) -> httpx.AsyncClient:
    """Create the shared AsyncClient used for registry queries."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": _USER_AGENT, "Accept": "application/json"},
        follow_redirects=True,
    )


def parse_search_response(payload: object) -> list[PackageDescriptor]:
    """Map an npm search payload to descriptors, preserving order.

    Raises ``TransportError`` when the payload does not have the expected shape.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("objects"), list):
        raise TransportError("registry response is missing 'objects'")

    packages: list[PackageDescriptor] = []
    for obj in payload["objects"]:
        pkg = obj.get("package") if isinstance(obj, dict) else None
        if not isinstance(pkg, dict):
            raise TransportError("registry result is missing 'package'")
        try:
            packages.append(
                PackageDescriptor(
                    name=pkg.get("name", ""),
                    version=pkg.get("version", ""),
                    description=pkg.get("description") or "",
                )
            )
        except ValidationError as exc:
            raise TransportError(f"malformed registry result: {exc}") from exc
    return packages


class RegistryClient:
    """httpx-backed implementation of ``PackageRegistry``."""

    def __init__(self, client: httpx.AsyncClient, settings: RegistrySettings) -> None:
        self._client = client
        self._settings = settings

    async def search(self, topic: str) -> list[PackageDescriptor]:
        params = {"text": f"keywords:{topic}", "size": self._settings.page_size}
        try:
            response = await self._client.get(self._settings.url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"registry returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"registry request failed: {exc}") from exc
        except ValueError as exc:
            # response.json() on a non-JSON body
            raise TransportError("registry returned invalid JSON") from exc

        packages = parse_search_response(payload)
        log.debug("registry_search", topic=topic, count=len(packages))
        return packages
