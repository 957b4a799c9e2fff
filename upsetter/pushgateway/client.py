"""Pushgateway API access: query groups, push the up gauge, delete groups."""

import httpx

from upsetter.pushgateway.groups import MetricsGroup, PushgatewayError, parse_metrics_groups


class Pushgateway:
    """Reads and updates Pushgateway metrics."""

    def __init__(
        self,
        base_url: str = "http://localhost:9091",
        timeout: float | None = 10.0,
        primary_label: str = "job",
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._prefix = f"{primary_label}/"

    async def query_metrics(self) -> list[MetricsGroup]:
        """Call the Query API and return the parsed metrics groups."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(f"{self._base_url}/api/v1/metrics")
        if response.status_code != 200:
            raise PushgatewayError(f"HTTP response: {response.status_code}")
        try:
            data = response.json()
        except ValueError as e:
            raise PushgatewayError(f"Invalid JSON: {e}") from e
        return parse_metrics_groups(data)

    async def upset(self, key: str, up: bool):
        """Push the up gauge for key.

        Going down uses PUT, which replaces every metric of the group.
        """
        url = self._metrics_url(key)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            if up:
                response = await client.post(url, content="up 1\n")
            else:
                response = await client.put(url, content="up 0\n")
        if response.status_code != 200:
            raise PushgatewayError(f"HTTP response: {response.status_code}")

    async def delete(self, key: str):
        """Delete all metrics of the group identified by key."""
        url = self._metrics_url(key)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.delete(url)
        if response.status_code != 202:
            raise PushgatewayError(f"HTTP response: {response.status_code}")

    def _metrics_url(self, key: str) -> str:
        if not key.startswith(self._prefix):
            raise PushgatewayError(f"Key without {self._prefix} prefix: {key}")
        return f"{self._base_url}/metrics/{key}"
