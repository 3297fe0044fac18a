"""
Enumeration types used across the application.
"""

from enum import Enum


class CompanyRole(str, Enum):
    """Role of a user inside a company"""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    GUEST = "guest"


COMPANY_ADMIN_ROLES = frozenset({CompanyRole.OWNER, CompanyRole.ADMIN})


def has_company_admin_level(role: str | None) -> bool:
    """Check whether a company role grants administrative rights."""
    if role is None:
        return False
    try:
        return CompanyRole(role) in COMPANY_ADMIN_ROLES
    except ValueError:
        return False


class DisplayConfigurationScope(str, Enum):
    """Levels at which an application can be configured"""
    GLOBAL = "global"
    CHANNEL = "channel"


class MigrationFailurePolicy(str, Enum):
    """What the legacy migration does when a single record fails"""
    ABORT = "abort"  # Re-raise and stop the batch
    SKIP = "skip"  # Log, record in the report, continue with the next record
