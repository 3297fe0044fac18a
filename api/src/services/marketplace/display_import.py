"""
Legacy display configuration import.

The previous platform stored an application's display configuration as a JSON
blob keyed by module (channel_tab, app, configuration, member_app,
drive_module, messages_module). Each module maps to one key of the structured
``display["twake"]`` section, independently of the others.

Absent modules become None for the frame-like bindings (tab, standalone,
direct) and are left out entirely for the feature modules (files, chat).
"""

import json
import logging
from collections.abc import Callable
from typing import Any

from src.core.exceptions import LegacyDisplayConfigurationError
from src.models.enums import DisplayConfigurationScope

logger = logging.getLogger(__name__)

DISPLAY_NAMESPACE = "twake"

# Returned by a module importer when the target key must not be written
OMIT = object()


def _is_set(value: Any) -> bool:
    """Truthiness as the previous platform saw it: empty objects still count."""
    if isinstance(value, (dict, list)):
        return True
    return bool(value)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def parse_display_configuration(raw: str | None, legacy_id: object = None) -> dict[str, Any]:
    """
    Decode a legacy display configuration blob.

    Raises:
        LegacyDisplayConfigurationError: If the blob is not valid JSON
    """
    if raw is None:
        return {}
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise LegacyDisplayConfigurationError(legacy_id, str(e)) from e
    return _as_dict(decoded)


def _frame(binding: Any) -> dict[str, Any] | bool | None:
    if not _is_set(binding):
        return None
    iframe = _as_dict(binding).get("iframe")
    return {"url": iframe} if iframe else True


def import_tab(legacy: dict[str, Any], identity: dict[str, Any]) -> Any:
    return _frame(legacy.get("channel_tab"))


def import_standalone(legacy: dict[str, Any], identity: dict[str, Any]) -> Any:
    return _frame(legacy.get("app"))


def import_configuration(legacy: dict[str, Any], identity: dict[str, Any]) -> list[str]:
    configuration = _as_dict(legacy.get("configuration"))
    scopes: list[str] = []
    # Order matters: global first, then channel
    if configuration.get("can_configure_in_workspace"):
        scopes.append(DisplayConfigurationScope.GLOBAL.value)
    if configuration.get("can_configure_in_channel"):
        scopes.append(DisplayConfigurationScope.CHANNEL.value)
    return scopes


def import_direct(legacy: dict[str, Any], identity: dict[str, Any]) -> Any:
    if not _is_set(legacy.get("member_app")):
        return None
    name, icon = identity.get("name"), identity.get("icon")
    if name or icon:
        return {"name": name, "icon": icon}
    return True


def import_files(legacy: dict[str, Any], identity: dict[str, Any]) -> Any:
    drive_module = legacy.get("drive_module")
    if not _is_set(drive_module):
        return OMIT

    drive_module = _as_dict(drive_module)
    can_open_files = _as_dict(drive_module.get("can_open_files"))
    return {
        "editor": {
            "preview_url": can_open_files.get("preview_url"),
            "edition_url": can_open_files.get("url"),
            "extensions": _as_list(can_open_files.get("main_ext"))
            + _as_list(can_open_files.get("other_ext")),
            "empty_files": drive_module.get("can_create_files") or [],
        },
        "actions": [],
    }


def import_chat(legacy: dict[str, Any], identity: dict[str, Any]) -> Any:
    messages_module = legacy.get("messages_module")
    if not _is_set(messages_module):
        return OMIT

    messages_module = _as_dict(messages_module)
    has_input = _is_set(messages_module.get("in_plus")) or _is_set(messages_module.get("right_icon"))
    commands = messages_module.get("commands")
    action = messages_module.get("action")
    return {
        "input": {"icon": identity.get("icon")} if has_input else None,
        "commands": commands if _is_set(commands) else None,
        "actions": (
            [{"name": _as_dict(action).get("description"), "id": "default"}]
            if _is_set(action)
            else None
        ),
    }


DisplayModuleImporter = Callable[[dict[str, Any], dict[str, Any]], Any]

# target key -> importer, in output order
DISPLAY_MODULE_IMPORTERS: tuple[tuple[str, DisplayModuleImporter], ...] = (
    ("tab", import_tab),
    ("standalone", import_standalone),
    ("configuration", import_configuration),
    ("direct", import_direct),
    ("files", import_files),
    ("chat", import_chat),
)


def import_display(
    legacy_display: dict[str, Any],
    identity: dict[str, Any],
    display: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build the structured display section from a decoded legacy blob.

    Args:
        legacy_display: Decoded legacy display configuration
        identity: Identity of the application being imported (name and icon
            are reused by the direct and chat bindings)
        display: Existing display section to merge into

    Returns:
        Display section with a ``twake`` namespace
    """
    display = dict(display or {})
    namespace = dict(_as_dict(display.get(DISPLAY_NAMESPACE)))

    for target, importer in DISPLAY_MODULE_IMPORTERS:
        value = importer(legacy_display, identity)
        if value is not OMIT:
            namespace[target] = value

    display[DISPLAY_NAMESPACE] = namespace
    return display
