"""Postcode geocoding via postcodes.io.

Turns free-text UK postcodes into coordinates. Format checks never block a
lookup: the service decides whether a postcode exists.
"""

import re
import time

import httpx

from .logger import get_logger
from .models import Coordinate

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.postcodes.io"
DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "ParkFinder/1.0"

NOT_FOUND_MESSAGE = "Postcode not found. Please check and try again."
INVALID_POSTCODE_MESSAGE = "Please enter a valid UK postcode"

UK_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}[0-9][A-Z0-9]? ?[0-9][A-Z]{2}$", re.IGNORECASE)


class ResolutionError(Exception):
    """Raised when a postcode cannot be resolved to a coordinate.

    The message is meant to be shown to the user as-is.
    """

    def __init__(self, message: str, postcode: str = ""):
        super().__init__(message)
        self.message = message
        self.postcode = postcode


def normalize_postcode(raw: str) -> str:
    """
    Normalize free-text postcode input.

    Uppercases, drops everything that is not a letter or digit, then puts a
    single space before the final three characters (the inward code).

    Examples:
        >>> normalize_postcode("sw1a1aa")
        'SW1A 1AA'
        >>> normalize_postcode(" n1 9gu ")
        'N1 9GU'
    """
    clean = re.sub(r"[^A-Z0-9]", "", (raw or "").upper())
    if len(clean) > 3:
        return f"{clean[:-3]} {clean[-3:]}"
    return clean


def looks_like_postcode(text: str) -> bool:
    """Check whether text has the shape of a UK postcode."""
    return bool(UK_POSTCODE_RE.match((text or "").strip()))


class PostcodeGeocoder:
    """
    Async client resolving UK postcodes to coordinates.

    Uses ``GET {base_url}/postcodes/{postcode}`` and expects a JSON body
    with ``result.latitude`` and ``result.longitude``. Any other outcome
    becomes a ResolutionError.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the geocoder.

        Args:
            base_url: Root URL of the postcode lookup service
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent

        client_kwargs = {
            "base_url": self.base_url,
            "timeout": timeout,
            "headers": {"User-Agent": user_agent, "Accept": "application/json"},
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport

        self._client = httpx.AsyncClient(**client_kwargs)

    async def resolve(self, raw_postcode: str) -> Coordinate:
        """
        Resolve a postcode to a coordinate.

        Args:
            raw_postcode: Postcode as typed by the user

        Returns:
            Coordinate of the postcode

        Raises:
            ResolutionError: If the service does not know the postcode, its
                response is unusable, or the request itself fails
        """
        if not (raw_postcode or "").strip():
            raise ResolutionError(INVALID_POSTCODE_MESSAGE, postcode=raw_postcode or "")

        postcode = normalize_postcode(raw_postcode)
        if not postcode:
            # Nothing left to look up, answer as the service would
            logger.warning(f"Postcode not found: {raw_postcode!r} has no letters or digits")
            raise ResolutionError(NOT_FOUND_MESSAGE, postcode=raw_postcode)

        if not looks_like_postcode(postcode):
            logger.debug(f"'{postcode}' does not look like a UK postcode, looking it up anyway")

        start_time = time.time()
        try:
            logger.debug(f"GET {self.base_url}/postcodes/{postcode}")
            response = await self._client.get(f"/postcodes/{postcode}")
        except httpx.HTTPError as e:
            logger.warning(f"Postcode lookup failed for {postcode}: {e}")
            raise ResolutionError(str(e) or INVALID_POSTCODE_MESSAGE, postcode=postcode) from e

        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(f"HTTP {response.status_code} for {postcode} in {elapsed_ms:.0f}ms")

        coordinate = _parse_lookup(response)
        if coordinate is None:
            logger.warning(f"Postcode not found: {postcode} (HTTP {response.status_code})")
            raise ResolutionError(NOT_FOUND_MESSAGE, postcode=postcode)

        logger.info(
            f"Resolved {postcode} to ({coordinate.latitude:.5f}, {coordinate.longitude:.5f})"
        )
        return coordinate

    async def aclose(self):
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()


def _parse_lookup(response: httpx.Response) -> Coordinate | None:
    """Extract the coordinate from a lookup response, or None if unusable."""
    if not response.is_success:
        return None

    try:
        data = response.json()
    except ValueError:
        return None

    result = data.get("result") if isinstance(data, dict) else None
    if not isinstance(result, dict):
        return None

    latitude = result.get("latitude")
    longitude = result.get("longitude")
    if not isinstance(latitude, (int, float)) or not isinstance(longitude, (int, float)):
        return None
    if isinstance(latitude, bool) or isinstance(longitude, bool):
        return None

    return Coordinate(latitude=float(latitude), longitude=float(longitude))
