"""
Marketplace application services.

- legacy_import / display_import: legacy row -> structured application
- lifecycle: create/update rules and the publication state machine
- visibility: admin vs public projection
- migration: paginated legacy migration
- events / hooks: event forwarding to installed applications
- plugin_registrar: plugins service notification
"""

from src.services.marketplace.events import ApplicationEventForwarder
from src.services.marketplace.hooks import ApplicationHooksService
from src.services.marketplace.legacy_import import import_legacy_application
from src.services.marketplace.lifecycle import PublicationLifecycleManager
from src.services.marketplace.migration import MigrationPipeline, MigrationReport
from src.services.marketplace.plugin_registrar import PluginRegistrarClient
from src.services.marketplace.visibility import VisibilityProjector, project_application

__all__ = [
    "ApplicationEventForwarder",
    "ApplicationHooksService",
    "MigrationPipeline",
    "MigrationReport",
    "PluginRegistrarClient",
    "PublicationLifecycleManager",
    "VisibilityProjector",
    "import_legacy_application",
    "project_application",
]
