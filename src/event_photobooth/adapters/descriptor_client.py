"""Client for the remote overlay and template listing endpoints."""

import time
from dataclasses import dataclass
from typing import Protocol

import httpx


class DescriptorClient(Protocol):
    """Interface for fetching remote descriptor listings."""

    async def fetch_overlays(self) -> dict[str, object]:
        """Return the raw overlay listing payload."""

    async def fetch_templates(self) -> dict[str, object]:
        """Return the raw template listing payload."""


@dataclass
class HttpxDescriptorClient(DescriptorClient):
    """HTTPX-backed descriptor listing client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(cls, base_url: str) -> "HttpxDescriptorClient":
        """Create a listing client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def fetch_overlays(self) -> dict[str, object]:
        """Fetch the overlay listing."""
        return await self._get_listing("overlays")

    async def fetch_templates(self) -> dict[str, object]:
        """Fetch the template listing."""
        return await self._get_listing("templates")

    async def _get_listing(self, resource: str) -> dict[str, object]:
        response = await self.http_client.get(
            f"{self.base_url}/api/admin/{resource}",
            params={"t": int(time.time() * 1000)},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
