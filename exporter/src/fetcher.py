"""
Async HTTP fetcher for the Pylontech console ``/req`` endpoint.

Issues ``GET http://{host}:{port}/req?code={command}`` and returns the
response body as a list of stripped, non-empty lines.  Designed to be
robust:

- Never raises to the caller; any transport problem is logged and reported
  as ``None``.
- ``None`` (fetch failed) is distinct from ``[]`` (device answered with
  nothing useful), so the caller can tell a dead link from an empty dump.
- No retries: the next scrape cycle is the retry.

CHANGELOG:
- 2026-10-19: Split responses on newline only (STORY-012)
- 2026-10-14: Initial creation (STORY-008)

TODO:
- None
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S: float = 15.0
"""Timeout per console request in seconds."""


def split_lines(body: str) -> list[str]:
    """Split a response body into stripped lines, dropping empty ones."""
    return [line.strip() for line in body.split("\n") if line.strip()]


class ConsoleFetcher:
    """Fetches console command output from one device.

    Args:
        host: Console IP address or hostname.
        port: HTTP port (default 80).
        timeout_s: Per-request timeout in seconds.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int = 80,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout_s = timeout_s

    @property
    def base_url(self) -> str:
        return f"http://{self._host}:{self._port}"

    async def fetch(self, command: str) -> list[str] | None:
        """Run *command* on the console and return its output lines.

        Args:
            command: Console command, e.g. ``"pwr"`` or ``"bat+1"``.

        Returns:
            The non-empty, stripped response lines on success (possibly an
            empty list), or ``None`` on any transport error or non-200
            status.
        """
        # The command goes into the query verbatim: the console reads the
        # "+" in "bat+1" as the separator between command and argument.
        url = f"{self.base_url}/req?code={command}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch '%s' from %s: %s", command, url, exc)
            return None

        if response.status_code != 200:
            logger.warning(
                "Received HTTP %d for '%s' from %s",
                response.status_code,
                command,
                url,
            )
            return None

        return split_lines(response.text)
