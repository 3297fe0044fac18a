"""
Plugin Registrar Client

Registers applications that declare a source repository with the external
plugins service. Registration is fire-and-forget: the save that triggered it
never waits for, or fails because of, the plugins service.
"""

import asyncio
import logging
from typing import Any
from uuid import UUID

import httpx

logger = logging.getLogger(__name__)


class PluginRegistrarClient:
    """HTTP client for the plugins service."""

    def __init__(
        self,
        base_url: str | None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout
        self._transport = transport
        # Strong references so pending registrations are not garbage collected
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def enabled(self) -> bool:
        return self.base_url is not None

    async def register(self, repository_url: str, app_id: UUID, app_secret: str) -> Any:
        """
        Register an application's repository with the plugins service.

        Returns:
            Decoded JSON response of the plugins service

        Raises:
            httpx.HTTPError: On transport failure or non-2xx response
        """
        if not self.enabled:
            raise RuntimeError("Plugins service URL is not configured")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/add",
                    json={
                        "gitRepo": repository_url,
                        "pluginId": str(app_id),
                        "pluginSecret": app_secret,
                    },
                )
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                logger.error(
                    f"Plugins service error: {e.response.status_code} - {e.response.text}"
                )
                raise

    async def _register_and_log(self, repository_url: str, app_id: UUID, app_secret: str) -> None:
        try:
            result = await self.register(repository_url, app_id, app_secret)
            logger.info(f"Registered plugin for application {app_id}: {result}")
        except Exception as e:
            logger.error(f"Failed to register plugin for application {app_id}: {e}")

    def register_in_background(
        self,
        repository_url: str,
        app_id: UUID,
        app_secret: str,
    ) -> asyncio.Task[None] | None:
        """
        Schedule a registration without awaiting it.

        Failures are logged, never raised. Returns the scheduled task, or None
        when the plugins service is not configured.
        """
        if not self.enabled:
            logger.debug(f"Plugins service not configured, skipping registration of {app_id}")
            return None

        task = asyncio.create_task(self._register_and_log(repository_url, app_id, app_secret))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for pending registrations (used on shutdown)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
