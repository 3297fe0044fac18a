"""
SQLAlchemy ORM Models

Pure database models using SQLAlchemy 2.0 declarative style.
These models define the database schema and relationships.

For API schemas (request/response), see src.models.contracts
"""

from src.models.orm.base import Base
from src.models.orm.companies import Company, CompanyUser
from src.models.orm.legacy_applications import LegacyApplication
from src.models.orm.marketplace_applications import CompanyApplication, MarketplaceApplication

__all__ = [
    # Base
    "Base",
    # Companies
    "Company",
    "CompanyUser",
    # Marketplace
    "MarketplaceApplication",
    "CompanyApplication",
    # Legacy platform
    "LegacyApplication",
]
