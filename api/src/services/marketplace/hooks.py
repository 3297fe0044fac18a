"""
Application Hooks Service

Delivers events to an application's hooks URL. Each body is signed with the
application's private key so the application can authenticate the sender.
"""

import json
import logging
from typing import Any
from uuid import UUID

import httpx

from src.core.exceptions import ValidationError
from src.core.security import sign_payload
from src.models.orm.marketplace_applications import MarketplaceApplication

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Marketplace-Signature"


class ApplicationHooksService:
    """Sends signed events to application hooks."""

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self._transport = transport

    @staticmethod
    def build_event(
        application: MarketplaceApplication,
        event_type: str,
        event_name: str | None,
        content: dict[str, Any],
        company_id: UUID,
        workspace_id: str,
        user_id: UUID,
        connection_id: str | None = None,
    ) -> dict[str, Any]:
        return {
            "type": event_type,
            "name": event_name,
            "content": content,
            "connection_id": connection_id,
            "user_id": str(user_id),
            "company_id": str(company_id),
            "workspace_id": workspace_id,
            "application_id": str(application.id),
        }

    async def notify_app(
        self,
        application: MarketplaceApplication,
        event_type: str,
        event_name: str | None,
        content: dict[str, Any],
        company_id: UUID,
        workspace_id: str,
        user_id: UUID,
        connection_id: str | None = None,
    ) -> Any:
        """
        Deliver an event to the application's hooks URL.

        Returns:
            Decoded JSON body of the hook response (raw text if not JSON)

        Raises:
            ValidationError: If the application has no hooks URL
            httpx.HTTPError: On transport failure or non-2xx response
        """
        if not application.hooks_url:
            raise ValidationError(f"Application {application.id} has no hooks url")

        event = self.build_event(
            application,
            event_type,
            event_name,
            content,
            company_id,
            workspace_id,
            user_id,
            connection_id,
        )
        body = json.dumps(event).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign_payload(body, application.private_key or ""),
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(application.hooks_url, content=body, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(
                    f"Hook of application {application.id} failed: "
                    f"{e.response.status_code} - {e.response.text}"
                )
                raise

        logger.debug(f"Delivered {event_type} event to application {application.id}")
        try:
            return response.json()
        except ValueError:
            return response.text
