import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from booking_bot.services.errors import ApiError

logger = logging.getLogger(__name__)


@dataclass
class ApiSession:
    """Bearer token for one logged-in user; read by the client, never written."""

    token: Optional[str] = None


class ApiClient:
    def __init__(self, http: httpx.AsyncClient, session: ApiSession | None = None):
        self.http = http
        self.session = session or ApiSession()

    def _headers(self, extra: dict[str, str] | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Single attempt, no retry. Raises ApiError on transport failure,
        non-2xx status or a body that is not JSON.
        """
        logger.debug("api: %s %s auth=%s", method, endpoint, bool(self.session.token))
        try:
            response = await self.http.request(
                method,
                endpoint,
                json=json,
                params=params,
                headers=self._headers(headers),
            )
        except httpx.HTTPError as exc:
            logger.warning("api: %s %s transport failure: %s", method, endpoint, exc)
            raise ApiError(f"{method} {endpoint} failed: {exc}") from exc

        if not response.is_success:
            logger.warning("api: %s %s status=%s", method, endpoint, response.status_code)
            raise ApiError(f"HTTP error on {method} {endpoint}", status=response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("api: %s %s returned non-JSON body status=%s", method, endpoint, response.status_code)
            raise ApiError(f"Malformed response from {method} {endpoint}", status=response.status_code) from exc
