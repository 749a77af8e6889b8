from .approvals import OwnerApprovalService, OWNER_APPLICATIONS
from .seeding import (
    OwnerSeeder,
    OwnerCredential,
    OwnerSeedResult,
    SeedReport,
    owner_credentials,
)

__all__ = [
    "OwnerApprovalService",
    "OWNER_APPLICATIONS",
    "OwnerSeeder",
    "OwnerCredential",
    "OwnerSeedResult",
    "SeedReport",
    "owner_credentials",
]
