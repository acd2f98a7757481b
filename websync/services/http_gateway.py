"""Outbound HTTP for the station.

Every call opens its own client with an explicit timeout. Transport errors and
non-2xx responses are raised as ``GatewayError`` so callers can treat them as
ordinary failures.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import httpx

from websync.services.filenames import resolve_filename, unique_filename

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 10.0
TRANSFER_TIMEOUT = 300.0
WEBHOOK_TIMEOUT = 15.0


class GatewayError(Exception):
    pass


@dataclass
class DownloadResult:
    filename: str
    path: Path
    size: int


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


class HttpGateway:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # A custom transport is only passed in by tests
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport, follow_redirects=True)

    async def download(
        self, url: str, folder: Path, token: str = "", reserved: Iterable[str] = ()
    ) -> DownloadResult:
        """Stream ``url`` into ``folder`` under a name that clobbers neither existing files nor ``reserved`` names."""
        folder = Path(folder)
        folder.mkdir(parents=True, exist_ok=True)

        try:
            async with self._client(TRANSFER_TIMEOUT) as client:
                async with client.stream("GET", url, headers=auth_headers(token)) as response:
                    if not response.is_success:
                        raise GatewayError(f"Request to {url} failed with status: {response.status_code}")

                    filename = resolve_filename(response.headers.get("content-disposition"), url)
                    filename = unique_filename(folder, filename, reserved)
                    target = folder / filename
                    size = 0
                    try:
                        with open(target, "wb") as fh:
                            async for chunk in response.aiter_bytes():
                                fh.write(chunk)
                                size += len(chunk)
                    except (httpx.HTTPError, OSError):
                        target.unlink(missing_ok=True)
                        raise
        except httpx.HTTPError as e:
            raise GatewayError(f"Request to {url} failed: {e}") from e

        logger.info(f"Downloaded {url} to {target} ({size:,} bytes)")
        return DownloadResult(filename=filename, path=target, size=size)

    async def upload(self, url: str, path: Path, token: str = "") -> None:
        """POST ``path`` as the multipart field ``file``."""
        path = Path(path)
        try:
            with open(path, "rb") as fh:
                files = {"file": (path.name, fh, "application/octet-stream")}
                async with self._client(TRANSFER_TIMEOUT) as client:
                    response = await client.post(url, files=files, headers=auth_headers(token))
        except httpx.HTTPError as e:
            raise GatewayError(f"POST to {url} failed: {e}") from e

        if not response.is_success:
            raise GatewayError(f"POST to {url} failed: {response.status_code}")

    async def post_json(self, url: str, payload: Dict[str, Any], token: str = "") -> None:
        try:
            async with self._client(WEBHOOK_TIMEOUT) as client:
                response = await client.post(url, json=payload, headers=auth_headers(token))
        except httpx.HTTPError as e:
            raise GatewayError(f"POST request to {url} failed: {e}") from e

        if not response.is_success:
            raise GatewayError(
                f"POST request to {url} failed with status: {response.status_code}. Response: {response.text}"
            )

    async def probe(self, url: str) -> None:
        try:
            async with self._client(PROBE_TIMEOUT) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise GatewayError(f"Request to {url} failed: {e}") from e

        if not response.is_success:
            raise GatewayError(f"Request to {url} failed with status: {response.status_code}")
