"""
Marketplace Models

ORM models (database tables):
    from src.models import MarketplaceApplication, LegacyApplication
    from src.models.orm.marketplace_applications import MarketplaceApplication  # Granular access

Pydantic contracts (API request/response):
    from src.models.contracts.marketplace_applications import MarketplaceApplicationDraft

Enums:
    from src.models.enums import CompanyRole
"""

# ORM models (database tables)
from src.models.orm import (
    Base,
    Company,
    CompanyApplication,
    CompanyUser,
    LegacyApplication,
    MarketplaceApplication,
)

# Enums
from src.models.enums import (
    CompanyRole,
    DisplayConfigurationScope,
    MigrationFailurePolicy,
)

__all__ = [
    # Base
    "Base",
    # ORM models
    "Company",
    "CompanyUser",
    "MarketplaceApplication",
    "CompanyApplication",
    "LegacyApplication",
    # Enums
    "CompanyRole",
    "DisplayConfigurationScope",
    "MigrationFailurePolicy",
]
