"""
Legacy application import.

Pure transformation from a flat LegacyApplication row into a structured
MarketplaceApplication. No I/O: the migration pipeline persists the result.

Capability strings are parsed field by field and fall back to an empty list
when malformed. Only an undecodable display configuration fails the import.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from src.models.orm.legacy_applications import LegacyApplication
from src.models.orm.marketplace_applications import MarketplaceApplication
from src.services.marketplace.display_import import import_display, parse_display_configuration

logger = logging.getLogger(__name__)

DEFAULT_WEBSITE = "http://twake.app/"
DEFAULT_COMPATIBILITY = "twake"
MIGRATED_VERSION = 1


def parse_capabilities(raw: str | None) -> list[str]:
    """
    Decode a JSON list of capability tokens.

    Returns an empty list for absent, malformed or non-list input.
    """
    if not raw:
        return []
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring malformed capability list: {raw!r}")
        return []
    if not isinstance(decoded, list):
        return []
    return [token for token in decoded if isinstance(token, str)]


def build_identity(legacy: LegacyApplication) -> dict[str, Any]:
    name = legacy.depreciated_name
    code = (legacy.depreciated_simple_name or name or "").lower()
    return {
        "code": code,
        "name": name,
        "icon": legacy.depreciated_icon_url,
        "description": legacy.depreciated_description,
        "website": DEFAULT_WEBSITE,
        "categories": [],
        "compatibility": [DEFAULT_COMPATIBILITY],
    }


def build_access(legacy: LegacyApplication) -> dict[str, list[str]]:
    # write and delete share the same legacy source but are separate lists
    return {
        "read": parse_capabilities(legacy.depreciated_privileges),
        "write": parse_capabilities(legacy.depreciated_capabilities),
        "delete": parse_capabilities(legacy.depreciated_capabilities),
        "hooks": parse_capabilities(legacy.depreciated_hooks),
    }


def import_legacy_application(
    legacy: LegacyApplication,
    now: datetime | None = None,
) -> MarketplaceApplication:
    """
    Transform a legacy application into a structured application.

    Args:
        legacy: Row from the previous platform
        now: Timestamp used for created_at/updated_at (defaults to current UTC time)

    Returns:
        Transient MarketplaceApplication with version 1

    Raises:
        LegacyDisplayConfigurationError: If the display configuration is not valid JSON
    """
    now = now or datetime.now(timezone.utc)
    identity = build_identity(legacy)

    display = import_display(
        parse_display_configuration(legacy.depreciated_display_configuration, legacy.id),
        identity,
    )

    return MarketplaceApplication(
        id=legacy.id,
        company_id=legacy.group_id,
        is_default=bool(legacy.is_default),
        identity=identity,
        published=bool(legacy.depreciated_is_available_to_public),
        requested=bool(legacy.depreciated_public)
        and not bool(legacy.depreciated_twake_team_validation),
        hooks_url=legacy.depreciated_api_events_url,
        allowed_ips=legacy.depreciated_api_allowed_ip,
        private_key=legacy.depreciated_api_private_key,
        access=build_access(legacy),
        display=display,
        version=MIGRATED_VERSION,
        created_at=now,
        updated_at=now,
        is_deleted=False,
    )
