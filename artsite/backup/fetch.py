"""Outbound fetch of externally hosted artwork images."""

from dataclasses import dataclass
from typing import Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .._utils import logger


@dataclass
class FetchedImage:
    data: bytes
    content_type: Optional[str]


class ImageFetcher:
    """Downloads images referenced by URL in legacy or image-less archives."""

    def __init__(
        self,
        timeout: float = 30.0,
        max_bytes: int = 20 * 1024 * 1024,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.transport = transport

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def fetch(self, url: str) -> FetchedImage:
        """Fetch ``url``.

        Raises:
            ValueError: If the URL is not absolute http(s) or the body exceeds max_bytes
            httpx.HTTPError: On transport failures or non-2xx responses
        """
        if not url.startswith(("http://", "https://")):
            raise ValueError(f"Refusing to fetch non-http URL: {url}")

        async with httpx.AsyncClient(
            timeout=self.timeout, follow_redirects=True, transport=self.transport
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                chunks = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self.max_bytes:
                        raise ValueError(f"Image at {url} exceeds {self.max_bytes:,} bytes")
                    chunks.append(chunk)
                content_type = response.headers.get("content-type")

        logger.debug(f"Fetched {received:,} bytes from {url}")
        return FetchedImage(data=b"".join(chunks), content_type=content_type)
