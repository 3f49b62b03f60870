"""Client for the upstream menu-analysis service.

Uploads menu photos (base64 in a JSON body) with the target language and
returns the raw response bytes. Interpreting the body is the response
parser's job; this module only owns the transport.
"""

import base64
import logging

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_S = 120.0


class UpstreamError(Exception):
    pass


class UpstreamServerError(UpstreamError):
    def __init__(self, status_code: int):
        super().__init__(f"Menu analysis service returned HTTP {status_code}")
        self.status_code = status_code


class UpstreamNetworkError(UpstreamError):
    def __init__(self, reason: str):
        super().__init__(f"Menu analysis request failed: {reason}")
        self.reason = reason


def build_request_payload(images: list[bytes], target_language: str) -> dict:
    """JSON body expected by the analysis endpoint."""
    return {
        "target_language": target_language,
        "images": [
            {
                "filename": f"menu_{index}.jpg",
                "image": base64.b64encode(image).decode("ascii"),
            }
            for index, image in enumerate(images, start=1)
        ],
    }


class MenuAnalysisClient:
    """Async HTTP client for the menu-analysis endpoint."""

    def __init__(
        self,
        endpoint_url: str,
        *,
        timeout: float = _DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not endpoint_url:
            msg = "Menu analysis endpoint URL must not be empty."
            raise ValueError(msg)
        self._endpoint_url = endpoint_url
        self._timeout = timeout
        self._transport = transport

    async def upload_images(self, images: list[bytes], target_language: str) -> bytes:
        """Send ``images`` for analysis and return the raw response body.

        Raises:
            ValueError: If no images are given.
            UpstreamServerError: Non-200 response.
            UpstreamNetworkError: Connection, timeout or protocol failure.
        """
        if not images:
            msg = "At least one image is required."
            raise ValueError(msg)

        payload = build_request_payload(images, target_language)
        logger.info(
            "Uploading %d image(s) for menu analysis (target=%s)",
            len(images),
            target_language,
        )

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport,
            ) as client:
                resp = await client.post(self._endpoint_url, json=payload)
        except httpx.HTTPError as exc:
            raise UpstreamNetworkError(str(exc) or type(exc).__name__) from exc

        logger.info("Menu analysis responded with HTTP %d", resp.status_code)
        if resp.status_code != 200:
            raise UpstreamServerError(resp.status_code)
        return resp.content
