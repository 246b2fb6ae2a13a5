"""Async client for the Azure Computer Vision "analyze image" REST endpoint."""
import enum
import logging
from dataclasses import dataclass, field

import httpx

logger = logging.getLogger(__name__)

_ANALYZE_PATH = "/vision/v3.2/analyze"


class VisionServiceError(RuntimeError):
    """Raised when the analyze call fails for any reason (transport, HTTP, payload)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VisualFeature(str, enum.Enum):
    CATEGORIES = "Categories"
    DESCRIPTION = "Description"
    FACES = "Faces"
    IMAGE_TYPE = "ImageType"
    TAGS = "Tags"
    ADULT = "Adult"
    COLOR = "Color"
    BRANDS = "Brands"
    OBJECTS = "Objects"


ALL_FEATURES = tuple(VisualFeature)


@dataclass(frozen=True)
class VisionResult:
    tags: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    captions: tuple[str, ...] = ()
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, payload: dict) -> "VisionResult":
        """Build a result from the analyze JSON, treating absent sections as empty."""
        if not isinstance(payload, dict):
            raise VisionServiceError(f"Unexpected analyze payload: {type(payload).__name__}")
        tags = _names(payload.get("tags"), "name")
        categories = _names(payload.get("categories"), "name")
        description = payload.get("description") or {}
        captions = _names(description.get("captions"), "text")
        return cls(tags=tags, categories=categories, captions=captions, raw=payload)


def _names(items, key: str) -> tuple[str, ...]:
    if not items:
        return ()
    return tuple(
        str(item[key]) for item in items if isinstance(item, dict) and item.get(key)
    )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    error = body.get("error", body) if isinstance(body, dict) else {}
    if isinstance(error, dict) and error.get("message"):
        return f"{error.get('code', 'Error')}: {error['message']}"
    return response.text[:200]


class VisionClient:
    """Image analysis over one pooled httpx client.

    Constructed once at startup and shared by every update; it keeps no
    per-request state, so concurrent analyze calls are safe.
    """

    def __init__(
        self,
        *,
        api_key: str,
        endpoint: str,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self._api_key = api_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def analyze(
        self,
        image: bytes,
        features=ALL_FEATURES,
    ) -> VisionResult:
        """Analyze raw image bytes and return tags, categories and captions.

        Raises:
            VisionServiceError: on network errors, non-2xx responses or a
                body that is not JSON.
        """
        params = {"visualFeatures": ",".join(VisualFeature(f).value for f in features)}
        headers = {
            "Ocp-Apim-Subscription-Key": self._api_key,
            "Content-Type": "application/octet-stream",
        }
        try:
            response = await self._client.post(
                f"{self.endpoint}{_ANALYZE_PATH}",
                params=params,
                headers=headers,
                content=image,
            )
        except httpx.HTTPError as e:
            raise VisionServiceError(f"Vision request failed: {e}") from e

        if response.status_code >= 400:
            raise VisionServiceError(
                f"Vision API returned {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise VisionServiceError("Vision API returned a non-JSON body") from e

        logger.debug(f"Vision analyzed {len(image)} bytes: {payload}")
        return VisionResult.from_payload(payload)

    async def aclose(self) -> None:
        await self._client.aclose()
