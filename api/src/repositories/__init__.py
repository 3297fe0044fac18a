# Data access layer - PostgreSQL repositories
from src.repositories.base import BaseRepository
from src.repositories.companies import CompanyUserRepository
from src.repositories.legacy_applications import LegacyApplicationRepository
from src.repositories.marketplace_applications import (
    CompanyApplicationRepository,
    MarketplaceApplicationRepository,
)

__all__ = [
    "BaseRepository",
    "CompanyApplicationRepository",
    "CompanyUserRepository",
    "LegacyApplicationRepository",
    "MarketplaceApplicationRepository",
]
