"""HTTP client for the Harbinger API (metrics store and channel relay)."""

from __future__ import annotations

import httpx

METRICS_PATH = "/api/health/code"
RELAY_PATH = "/api/channels/relay"


class HarbingerApi:
    """Thin async wrapper; every call raises on transport errors or non-2xx."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self._transport = transport

    async def store_metrics(self, payload: dict) -> None:
        await self._post(METRICS_PATH, payload)

    async def relay(self, channel: str, agent: str, message: str) -> None:
        await self._post(RELAY_PATH, {"channel": channel, "agent": agent, "message": message})

    async def _post(self, path: str, payload: dict) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(path, json=payload)
            response.raise_for_status()
            return response
