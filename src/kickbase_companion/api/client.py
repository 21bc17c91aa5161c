"""
Kickbase API Client.

Async HTTP client for the Kickbase API. Response bodies are checked before
parsing because the provider answers with empty bodies, HTML error pages or a
"client too old" error instead of proper status codes.
"""

import asyncio
import json
import logging
from typing import Any

import httpx

from .endpoints import (
    DEFAULT_COMPETITION_ID,
    DEFAULT_USER_AGENT,
    KICKBASE_BASE_URL,
    get_competition_table_url,
    get_league_market_url,
    get_league_matches_url,
    get_league_ranking_url,
    get_leagues_url,
    user_image_url,
)
from .retry import RetryExhaustedError, RetryPolicy

logger = logging.getLogger(__name__)

# Provider error code for outdated client versions
CLIENT_TOO_OLD_CODE = 5
CLIENT_TOO_OLD_MESSAGE = "ClientTooOld"


class KickbaseAPIError(Exception):
    """Base exception for Kickbase API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class EmptyResponseError(KickbaseAPIError):
    """Raised when the provider returns an empty body."""

    pass


class HTMLResponseError(KickbaseAPIError):
    """Raised when the provider returns an HTML page instead of JSON."""

    pass


class InvalidJSONError(KickbaseAPIError):
    """Raised when the body cannot be parsed as JSON."""

    pass


class ClientTooOldError(KickbaseAPIError):
    """Raised when the provider rejects the client version."""

    pass


class KickbaseHTTPError(KickbaseAPIError):
    """Raised for a non-success status with a JSON error body."""

    pass


class KickbaseTransportError(KickbaseAPIError):
    """Raised when the request could not be completed."""

    pass


class UnexpectedFormatError(KickbaseAPIError):
    """Raised when a valid JSON payload does not have the expected shape."""

    pass


RETRYABLE_ERRORS = (
    EmptyResponseError,
    HTMLResponseError,
    InvalidJSONError,
    KickbaseTransportError,
)


def is_retryable(exc: BaseException) -> bool:
    """Malformed bodies and transport failures get another attempt."""
    return isinstance(exc, RETRYABLE_ERRORS)


def _items(data: Any, what: str) -> list[dict[str, Any]]:
    """List payloads come bare or wrapped in an "it" key."""
    if isinstance(data, dict):
        data = data.get("it")
    if not isinstance(data, list):
        raise UnexpectedFormatError(f"Unexpected data format for {what}", 500)
    return data


def parse_response(response: httpx.Response) -> Any:
    """
    Validate and decode a provider response.

    Raises:
        EmptyResponseError, HTMLResponseError, InvalidJSONError: Retryable
        ClientTooOldError, KickbaseHTTPError: Terminal
    """
    text = response.text
    logger.debug(
        f"Status {response.status_code}, {len(text)} bytes: {text[:150]!r}"
    )

    if not text or not text.strip():
        raise EmptyResponseError("Empty response from server", response.status_code)

    if "<!DOCTYPE" in text or "<html" in text:
        raise HTMLResponseError("Received HTML instead of JSON", response.status_code)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidJSONError(
            f"Response could not be parsed as JSON: {e}", response.status_code
        ) from e

    if (
        isinstance(data, dict)
        and data.get("err") == CLIENT_TOO_OLD_CODE
        and data.get("errMsg") == CLIENT_TOO_OLD_MESSAGE
    ):
        raise ClientTooOldError(CLIENT_TOO_OLD_MESSAGE, status_code=400)

    if not response.is_success:
        message = None
        if isinstance(data, dict):
            message = data.get("message") or data.get("errMsg")
        raise KickbaseHTTPError(
            message or response.reason_phrase or "Unknown API error",
            status_code=response.status_code,
        )

    return data


class KickbaseClient:
    """
    Async client for the Kickbase API.

    Every request runs under a RetryPolicy; malformed bodies and transport
    errors are retried, provider error answers are not.
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        base_url: str = KICKBASE_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the Kickbase client.

        Args:
            base_url: API base URL
            user_agent: User agent header sent with every request
            timeout: Request timeout in seconds
            retry_policy: Retry settings (3 attempts, 0.6s doubling by default)
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy(is_retryable=is_retryable)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "KickbaseClient":
        """Build a client from KickbaseSettings."""
        return cls(
            base_url=settings.base_url,
            user_agent=settings.user_agent,
            timeout=settings.timeout,
            retry_policy=RetryPolicy(
                max_attempts=settings.max_attempts,
                base_delay=settings.retry_base_delay,
                is_retryable=is_retryable,
            ),
            **kwargs,
        )

    async def __aenter__(self) -> "KickbaseClient":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_client(self) -> None:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        token: str | None = None,
        **kwargs: Any,
    ) -> Any:
        """
        Make an HTTP request under the retry policy.

        Raises:
            ClientTooOldError, KickbaseHTTPError: Provider rejected the request
            KickbaseAPIError: All attempts failed (status 500)
        """
        await self._ensure_client()
        assert self._client is not None

        headers = kwargs.pop("headers", {})
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"

        attempt = 0

        async def attempt_request() -> Any:
            nonlocal attempt
            attempt += 1
            logger.debug(f"Request attempt {attempt}: {method} {url}")
            try:
                response = await self._client.request(
                    method, url, headers=headers, **kwargs
                )
            except httpx.TimeoutException as e:
                raise KickbaseTransportError(f"Request timeout: {e}") from e
            except httpx.RequestError as e:
                raise KickbaseTransportError(f"Request error: {e}") from e
            return parse_response(response)

        try:
            return await self.retry_policy.run(attempt_request)
        except RetryExhaustedError as e:
            raise KickbaseAPIError(
                str(e.last_error)
                or f"Request failed after {e.attempts} attempts",
                status_code=500,
            ) from e

    # =========================================================================
    # Public API Methods
    # =========================================================================

    async def get_league_matches(self, league_id: str, token: str) -> Any:
        """
        Get the match schedule of a league.

        Args:
            league_id: Kickbase league ID
            token: Bearer token of a league member
        """
        url = get_league_matches_url(league_id, self.base_url)
        logger.info(f"Fetching matches for league {league_id}")
        data = await self._request("GET", url, token=token)
        if isinstance(data, dict):
            logger.debug(f"Matches payload keys: {list(data.keys())}")
        return data

    async def get_leagues(self, token: str) -> list[dict[str, Any]]:
        """
        Get the leagues of the token's user.

        Raises:
            UnexpectedFormatError: If the payload holds no league list
        """
        logger.info("Fetching leagues")
        data = await self._request("GET", get_leagues_url(self.base_url), token=token)
        return _items(data, "leagues")

    async def get_league_ranking(self, league_id: str, token: str) -> Any:
        """
        Get the manager ranking of a league.

        Relative manager image paths ("uim") are turned into absolute URLs.
        """
        url = get_league_ranking_url(league_id, self.base_url)
        logger.info(f"Fetching ranking for league {league_id}")
        data = await self._request("GET", url, token=token)

        if isinstance(data, dict) and isinstance(data.get("us"), list):
            for user in data["us"]:
                if isinstance(user, dict) and user.get("uim"):
                    user["uim"] = user_image_url(str(user.get("i", "")), user["uim"])
        return data

    async def get_market(self, league_id: str, token: str) -> dict[str, Any]:
        """
        Get the transfer market of a league.

        Never raises for provider failures: an unexpected payload or a failed
        request gives an empty market.
        """
        url = get_league_market_url(league_id, self.base_url)
        logger.info(f"Fetching market for league {league_id}")
        try:
            data = await self._request("GET", url, token=token)
        except KickbaseAPIError as e:
            logger.error(f"Error fetching market for league {league_id}: {e.message}")
            return {"marketPlayers": []}

        if not isinstance(data, dict) or not isinstance(data.get("marketPlayers"), list):
            logger.warning(f"Unexpected market payload for league {league_id}")
            return {"marketPlayers": []}
        return data

    async def get_competition_table(
        self, token: str, competition_id: str = DEFAULT_COMPETITION_ID
    ) -> list[dict[str, Any]]:
        """
        Get the standings of a competition (Bundesliga by default).

        Raises:
            UnexpectedFormatError: If the payload holds no team list
        """
        url = get_competition_table_url(competition_id, self.base_url)
        logger.info(f"Fetching table for competition {competition_id}")
        data = await self._request("GET", url, token=token)
        return _items(data, "competition table")


# =============================================================================
# Synchronous Wrapper
# =============================================================================


class SyncKickbaseClient:
    """
    Synchronous wrapper for KickbaseClient.

    Runs the async client in its own event loop. Useful for the CLI and the
    Streamlit app.
    """

    def __init__(self, **kwargs: Any):
        """Initialize with same args as KickbaseClient."""
        self._async_client = KickbaseClient(**kwargs)
        self._loop: asyncio.AbstractEventLoop | None = None

    @classmethod
    def from_settings(cls, settings: Any) -> "SyncKickbaseClient":
        """Build a client from KickbaseSettings."""
        client = cls()
        client._async_client = KickbaseClient.from_settings(settings)
        return client

    def _run(self, coro):
        """Run a coroutine synchronously."""
        if self._loop is None:
            self._loop = asyncio.new_event_loop()
        return self._loop.run_until_complete(coro)

    def close(self) -> None:
        """Close the client."""
        self._run(self._async_client.close())
        if self._loop is not None:
            self._loop.close()
            self._loop = None

    def get_league_matches(self, league_id: str, token: str) -> Any:
        """Get the match schedule of a league."""
        return self._run(self._async_client.get_league_matches(league_id, token))

    def get_leagues(self, token: str) -> list[dict[str, Any]]:
        """Get the leagues of the token's user."""
        return self._run(self._async_client.get_leagues(token))

    def get_league_ranking(self, league_id: str, token: str) -> Any:
        """Get the manager ranking of a league."""
        return self._run(self._async_client.get_league_ranking(league_id, token))

    def get_market(self, league_id: str, token: str) -> dict[str, Any]:
        """Get the transfer market of a league."""
        return self._run(self._async_client.get_market(league_id, token))

    def get_competition_table(
        self, token: str, competition_id: str = DEFAULT_COMPETITION_ID
    ) -> list[dict[str, Any]]:
        """Get the standings of a competition."""
        return self._run(
            self._async_client.get_competition_table(token, competition_id)
        )
