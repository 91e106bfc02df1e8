import logging

import httpx
from pydantic import ValidationError

from ..core.errors import UpstreamUnavailableError
from ..schemas.invitation import ShortUrlResult

logger = logging.getLogger(__name__)


class ShortLinkError(UpstreamUnavailableError):
    default_detail = "The URL shortening service failed"


class ShortLinkNetworkError(ShortLinkError):
    default_detail = "The URL shortening service could not be reached"


class ShortLinkStatusError(ShortLinkError):
    default_detail = "The URL shortening service rejected the request"


class ShortLinkResponseError(ShortLinkError):
    default_detail = "The URL shortening service returned a malformed response"


class ShortLinkGateway:
    """Client for the external URL shortening service.

    The long URL for a token is ``{base_url}/{token}``; it is posted as a plain
    text body with the ``apikey`` header and the service answers with
    ``{hash, short_url, long_url}``.
    """

    def __init__(self, http_client: httpx.AsyncClient, api_url: str, api_key: str, base_url: str):
        self.http_client = http_client
        self.api_url = api_url
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    def long_url(self, token: str) -> str:
        return f"{self.base_url}/{token}"

    async def shorten(self, token: str) -> ShortUrlResult:
        try:
            response = await self.http_client.post(
                self.api_url,
                headers={"apikey": self.api_key, "Content-Type": "text/plain"},
                content=self.long_url(token),
            )
        except httpx.RequestError as exc:
            logger.error(f"Shortening request for {token} failed: {exc!r}")
            raise ShortLinkNetworkError() from exc

        if not response.is_success:
            logger.error(f"Shortening service answered {response.status_code} for {token}")
            raise ShortLinkStatusError(
                f"The URL shortening service answered with status {response.status_code}"
            )

        try:
            result = ShortUrlResult.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            logger.error(f"Malformed shortening response for {token}: {response.text[:200]}")
            raise ShortLinkResponseError() from exc

        return result
