import httpx

from booking_bot.services.api import ApiClient, ApiSession


class BackendClients:
    """Owns the pooled HTTP connection to the booking backend.

    One ``httpx.AsyncClient`` is shared by every user; each user gets a light
    ``ApiClient`` bound to their own session token.
    """

    def __init__(self, *, base_url: str, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._http

    def api(self, token: str | None = None) -> ApiClient:
        return ApiClient(self._client(), ApiSession(token=token))

    async def close(self):
        if self._http is not None:
            await self._http.aclose()
            self._http = None
