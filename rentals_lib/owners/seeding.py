"""Seed default owner accounts, each with an approved application and two listings.

Every record goes through `write_verified`, and each owner's records are
checked again at the end. Once all owners are processed the identity store
and the `users` collection are reconciled for the accounts that were
created.

An owner whose listing fails verification keeps whatever was verified
before the failure (account, profile, application, first listing); the
seeder reports the error and moves on to the next owner.
"""
from __future__ import annotations
import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from rentals_lib.accounts.auth import USERS_COLLECTION, AuthService, utc_now_iso
from rentals_lib.accounts.reconcile import ExpectedAccount, ReconcileReport, reconcile
from rentals_lib.store.errors import StoreError
from rentals_lib.store.verification import DEFAULT_POLICY, RetryPolicy, Sleep, write_verified_batch
from rentals_lib.util import generate_id

from .approvals import OWNER_APPLICATIONS, STATUS_APPROVED, OwnerApprovalService

logger = logging.getLogger(__name__)

OWNERS = 'owners'
OWNER_PROFILES = 'owner_profiles'
PUBLISHED_LISTINGS = 'published_listings'

LISTINGS_PER_OWNER = 2
SEED_EMAIL_DOMAIN = 'gmail.com'
DEFAULT_SEED_PASSWORD = 'E@yana05'

OWNER_NAMES = [
    'Rozel O. Ramos',
    'Maria Santos',
    'Juan Dela Cruz',
    'Ana Garcia',
    'Carlos Mendoza',
    'Liza Fernandez',
    'Roberto Torres',
    'Carmen Reyes',
    'Miguel Villanueva',
    'Patricia Aquino',
]

BARANGAYS = ['Bantayan', 'Calindagan', 'Daro', 'Piapi', 'Talay']

PROPERTY_TYPES = ['apartment', 'house', 'condo', 'room', 'studio']
RENTAL_TYPES = ['entire-place', 'private-room', 'shared-room']
LEASE_TERMS = ['short-term', 'long-term', 'negotiable']
PAYMENT_METHODS = ['cash', 'bank-transfer', 'gcash', 'paymaya']
AMENITIES = [
    'wifi', 'air-conditioning', 'parking', 'kitchen', 'washing-machine',
    'refrigerator', 'water-heater', 'security', 'cctv', 'near-transportation',
]
RULES = [
    'no-smoking', 'no-pets', 'no-parties', 'quiet-hours',
    'visitor-policy', 'maintenance-responsibility',
]
STREET_NUMBERS = ['123', '456', '789', '321', '654', '987', '111', '222', '333', '444']
STREET_NAMES = ['Main Street', 'Rizal Avenue', 'Magsaysay Road', 'Burgos Street', 'Gomez Avenue']


@dataclass
class OwnerCredential:
    name: str
    email: str
    password: str
    phone: str
    barangay: str


@dataclass
class OwnerSeedResult:
    success: bool
    owner_id: Optional[str] = None
    listing_ids: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class SeedReport:
    success: bool
    total_owners: int
    total_properties: int
    owners: List[OwnerCredential] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    reconciliation: Optional[ReconcileReport] = None


def seed_email(name: str, index: int, barangay_index: int) -> str:
    """`firstname@domain` for the first barangay, `firstname<n>@domain` after that."""
    first = name.split(' ')[0].lower()
    if barangay_index == 0:
        return f'{first}@{SEED_EMAIL_DOMAIN}'
    return f'{first}{barangay_index * 10 + index}@{SEED_EMAIL_DOMAIN}'


def seed_phone(index: int) -> str:
    return f'+63910{1000000 + index:07d}'


def owner_credentials(
    barangays: Sequence[str] = BARANGAYS,
    owners_per_barangay: int = len(OWNER_NAMES),
    password: str = DEFAULT_SEED_PASSWORD,
) -> List[OwnerCredential]:
    """Deterministic credential list for the seeded owners."""
    if owners_per_barangay > len(OWNER_NAMES):
        raise ValueError(f'at most {len(OWNER_NAMES)} owners per barangay are supported')
    creds = []
    for b_idx, barangay in enumerate(barangays):
        for i in range(owners_per_barangay):
            name = OWNER_NAMES[i]
            creds.append(OwnerCredential(
                name=name,
                email=seed_email(name, i + 1, b_idx),
                password=password,
                phone=seed_phone(b_idx * 10 + i + 1),
                barangay=barangay,
            ))
    return creds


class OwnerSeeder:
    def __init__(
        self,
        auth: AuthService,
        approvals: OwnerApprovalService,
        policy: RetryPolicy = DEFAULT_POLICY,
        sleep: Sleep = asyncio.sleep,
        rng: Optional[random.Random] = None,
        pause: float = 0.1,
    ) -> None:
        self.auth = auth
        self.store = auth.store
        self.approvals = approvals
        self.policy = policy
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.pause = pause

    def _listing(self, owner_id: str, cred: OwnerCredential, prop_index: int, owner_index: int) -> Dict[str, Any]:
        rng = self._rng
        property_type = rng.choice(PROPERTY_TYPES)
        rental_type = rng.choice(RENTAL_TYPES)
        rooms = rng.randint(1, 4)
        monthly_rent = rng.randint(5000, 19999)
        street = STREET_NAMES[owner_index % len(STREET_NAMES)]
        number = STREET_NUMBERS[(owner_index * 2 + prop_index) % len(STREET_NUMBERS)]
        address = f'{number} {street}, {cred.barangay}, Dumaguete City'
        location = address.split(',')[0]
        return {
            'id': generate_id('listing'),
            'user_id': owner_id,
            'owner_user_id': owner_id,
            'property_type': property_type,
            'rental_type': rental_type,
            'address': address,
            'barangay': cred.barangay.upper(),
            'rooms': rooms,
            'bathrooms': rng.randint(1, 2),
            'monthly_rent': monthly_rent,
            'price': monthly_rent,
            'amenities': rng.sample(AMENITIES, rng.randint(3, 6)),
            'rules': rng.sample(RULES, rng.randint(2, 4)),
            'payment_methods': rng.sample(PAYMENT_METHODS, rng.randint(2, 3)),
            'owner_name': cred.name,
            'business_name': f"{cred.name}'s Properties",
            'contact_number': cred.phone,
            'email': cred.email,
            'availability_status': 'available',
            'lease_term': rng.choice(LEASE_TERMS),
            'status': 'published',
            'published_at': utc_now_iso(),
            'title': f'{property_type} in {location}',
            'location': location,
            'size': rng.randint(20, 69),
            'capacity': rooms if rental_type == 'entire-place' else 1,
        }

    async def _missing_pieces(self, owner_id: str, cred: OwnerCredential) -> List[str]:
        for col in (USERS_COLLECTION, OWNERS, OWNER_APPLICATIONS, PUBLISHED_LISTINGS):
            self.store.clear_collection_cache(col)
        self.approvals.clear(owner_id)

        missing = []
        if await self.store.get(USERS_COLLECTION, owner_id) is None:
            missing.append('user record')
        if await self.store.get(OWNERS, owner_id) is None:
            missing.append('owner profile')
        if not await self.approvals.is_approved_owner(owner_id):
            missing.append('application')
        listings = [
            item for item in await self.store.list(PUBLISHED_LISTINGS)
            if isinstance(item, dict) and item.get('user_id') == owner_id
        ]
        if len(listings) != LISTINGS_PER_OWNER:
            missing.append(f'listings (found {len(listings)})')
        if not (await self.auth.sign_in(cred.email, cred.password)).success:
            missing.append('identity')
        return missing

    async def create_owner_with_properties(self, cred: OwnerCredential, index: int) -> OwnerSeedResult:
        logger.info("Creating owner %d for %s: %s (%s)", index + 1, cred.barangay, cred.name, cred.email)
        address = f'{cred.barangay} Street, Dumaguete City'
        signup = await self.auth.sign_up(
            cred.email, cred.password, 'owner',
            profile={'name': cred.name, 'phone': cred.phone, 'address': address},
        )
        if not signup.success or signup.user is None:
            return OwnerSeedResult(success=False, error=signup.error or 'Failed to create user account')

        owner_id = signup.user.id
        now = utc_now_iso()
        profile = {
            'user_id': owner_id,
            'business_name': f"{cred.name}'s Properties",
            'contact_number': cred.phone,
            'email': signup.user.email,
            'created_at': now,
        }
        application = {
            'id': generate_id('app'),
            'user_id': owner_id,
            'name': cred.name,
            'email': signup.user.email,
            'contact_number': cred.phone,
            'house_number': str(self._rng.randint(1, 999)),
            'street': STREET_NAMES[index % len(STREET_NAMES)],
            'barangay': cred.barangay.upper(),
            'status': STATUS_APPROVED,
            'created_by': owner_id,
            'reviewed_by': owner_id,
            'created_at': now,
            'reviewed_at': now,
        }
        listings = [self._listing(owner_id, cred, p, index) for p in range(LISTINGS_PER_OWNER)]

        try:
            await write_verified_batch(
                self.store,
                [(OWNERS, owner_id, profile), (OWNER_PROFILES, owner_id, profile)],
                policy=self.policy, sleep=self._sleep,
            )
            await self.approvals.submit(application)
            await write_verified_batch(
                self.store,
                [(PUBLISHED_LISTINGS, item['id'], item) for item in listings],
                policy=self.policy, sleep=self._sleep,
            )
        except StoreError as e:
            logger.error("Seeding owner %s stopped: %s", cred.email, e.message)
            return OwnerSeedResult(success=False, owner_id=owner_id, error=e.message)

        missing = await self._missing_pieces(owner_id, cred)
        if missing == ['identity']:
            # Repair the credential half of the account and check again.
            await reconcile(self.auth, [ExpectedAccount(cred.email, cred.password, 'owner', cred.name)],
                            policy=self.policy, sleep=self._sleep)
            missing = await self._missing_pieces(owner_id, cred)
        if missing:
            logger.error("Owner %s is missing data: %s", cred.email, ', '.join(missing))
            return OwnerSeedResult(success=False, owner_id=owner_id, error=f"Missing data: {', '.join(missing)}")

        return OwnerSeedResult(success=True, owner_id=owner_id, listing_ids=[item['id'] for item in listings])

    async def seed(
        self,
        barangays: Sequence[str] = BARANGAYS,
        owners_per_barangay: int = len(OWNER_NAMES),
        password: str = DEFAULT_SEED_PASSWORD,
    ) -> SeedReport:
        logger.info("Starting seed process for default owners")
        created: List[OwnerCredential] = []
        errors: List[str] = []
        total_properties = 0
        creds = owner_credentials(barangays, owners_per_barangay, password)

        for n, cred in enumerate(creds):
            result = await self.create_owner_with_properties(cred, n % owners_per_barangay)
            if result.success:
                created.append(cred)
                total_properties += len(result.listing_ids)
            else:
                errors.append(f'{cred.barangay} - {cred.name} ({cred.email}): {result.error}')
            if self.pause:
                await self._sleep(self.pause)

        report = await reconcile(
            self.auth,
            [ExpectedAccount(c.email, c.password, 'owner', c.name) for c in created],
            policy=self.policy, sleep=self._sleep,
        )
        for email in report.unresolved:
            errors.append(f'{email}: account could not be reconciled')

        for col in (USERS_COLLECTION, PUBLISHED_LISTINGS):
            self.store.clear_collection_cache(col)
        owner_users = [
            u for u in await self.store.list(USERS_COLLECTION)
            if isinstance(u, dict) and u.get('role') == 'owner'
        ]
        listings = await self.store.list(PUBLISHED_LISTINGS)
        if len(created) != len(owner_users):
            logger.warning("Created %d owners but found %d owner users", len(created), len(owner_users))
        if total_properties != len(listings):
            logger.warning("Created %d properties but found %d listings", total_properties, len(listings))

        logger.info(
            "Seed finished: %d/%d owners, %d properties, %d errors",
            len(created), len(creds), total_properties, len(errors),
        )
        return SeedReport(
            success=not errors,
            total_owners=len(created),
            total_properties=total_properties,
            owners=created,
            errors=errors,
            reconciliation=report,
        )
