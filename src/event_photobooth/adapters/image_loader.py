"""HTTP loader for overlay and template artwork."""

from dataclasses import dataclass
from urllib.parse import urljoin

import httpx

from event_photobooth.services.compositing import ImageLoader


@dataclass
class HttpxImageLoader(ImageLoader):
    """Fetches artwork bytes, resolving relative references against a base URL."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxImageLoader":
        """Create an image loader with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(follow_redirects=True),
        )

    def resolve(self, url: str) -> str:
        """Return an absolute URL for an image reference."""
        return urljoin(f"{self.base_url.rstrip('/')}/", url)

    async def load(self, url: str) -> bytes:
        """Download artwork bytes."""
        response = await self.http_client.get(self.resolve(url))
        response.raise_for_status()
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
