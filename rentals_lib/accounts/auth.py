"""Local authentication over the identity store.

Sign-up writes the identity entry and the matching `users` record, each
through `write_verified`, so a successful result means both can be read
back. If the second write fails the identity entry is left in place; the
seeder's reconciliation pass (see `rentals_lib.accounts.reconcile`) repairs
such pairs.
"""
from __future__ import annotations
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rentals_lib.store.collection_store import CollectionStore
from rentals_lib.store.errors import DurabilityError
from rentals_lib.store.verification import QUICK_POLICY, RetryPolicy, Sleep, write_verified
from rentals_lib.util import generate_id, normalize_email

from .identity import IdentityStore
from .models import ROLE_PERMISSIONS, AuthResult, AuthUser
from .passwords import DEFAULT_ITERATIONS, hash_password, verify_password

logger = logging.getLogger(__name__)

USERS_COLLECTION = 'users'

DUPLICATE_ACCOUNT_ERROR = (
    'An account with this email already exists. '
    'Please use a different email or try signing in instead.'
)
INVALID_CREDENTIALS_ERROR = 'Invalid email or password'
ACCOUNT_CREATE_FAILED_ERROR = 'Failed to create account'


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def auth_user_from_record(record: Dict[str, Any]) -> AuthUser:
    role = record.get('role') or (record.get('roles') or ['tenant'])[0]
    return AuthUser(
        id=record['id'],
        email=record['email'],
        role=role,
        roles=list(record.get('roles') or [role]),
        permissions=list(ROLE_PERMISSIONS.get(role, [])),
        name=record.get('name') or record['email'].split('@')[0],
    )


class AuthService:
    def __init__(
        self,
        identity: IdentityStore,
        store: CollectionStore,
        policy: RetryPolicy = QUICK_POLICY,
        sleep: Sleep = asyncio.sleep,
        password_iterations: int = DEFAULT_ITERATIONS,
        allow_data_clear: bool = False,
    ) -> None:
        self.identity = identity
        self.store = store
        self.policy = policy
        self._sleep = sleep
        self.password_iterations = password_iterations
        self.allow_data_clear = allow_data_clear

    def build_identity_record(self, user_record: Dict[str, Any], password: str) -> Dict[str, Any]:
        """Identity entry for `user_record` with a freshly hashed `password`."""
        record = {k: v for k, v in user_record.items() if k != 'password'}
        record['email'] = normalize_email(user_record.get('email'))
        record['password_hash'] = hash_password(password, self.password_iterations)
        return record

    async def sign_up(
        self,
        email: str,
        password: str,
        role: str = 'tenant',
        profile: Optional[Dict[str, Any]] = None,
    ) -> AuthResult:
        normalized = normalize_email(email)
        logger.info("Creating account for %s with role %s", normalized, role)
        if '@' not in normalized:
            return AuthResult(success=False, error='Invalid email')
        if not password:
            return AuthResult(success=False, error='Password is required')
        if role not in ROLE_PERMISSIONS:
            return AuthResult(success=False, error=f'Unknown role: {role}')

        self.identity.clear_cache()
        if await self.identity.get(normalized) is not None:
            logger.info("Account already exists: %s", normalized)
            return AuthResult(success=False, error=DUPLICATE_ACCOUNT_ERROR)

        now = utc_now_iso()
        user_record: Dict[str, Any] = {
            'name': normalized.split('@')[0],
            **(profile or {}),
            'id': generate_id('user'),
            'email': normalized,
            'role': role,
            'roles': [role],
            'created_at': now,
            'updated_at': now,
        }
        identity_record = self.build_identity_record(user_record, password)

        try:
            await self.identity.put_verified(identity_record, policy=self.policy, sleep=self._sleep)
            await write_verified(
                self.store, USERS_COLLECTION, user_record['id'], user_record,
                policy=self.policy, sleep=self._sleep,
            )
        except DurabilityError as e:
            logger.error("Failed to create account for %s: %s", normalized, e.message)
            return AuthResult(success=False, error=ACCOUNT_CREATE_FAILED_ERROR)

        logger.info("Account created: %s (%s)", normalized, user_record['id'])
        return AuthResult(success=True, user=auth_user_from_record(user_record))

    async def sign_in(self, email: str, password: str) -> AuthResult:
        normalized = normalize_email(email)
        self.identity.clear_cache()
        record = await self.identity.get(normalized)
        if record is None:
            logger.info("Sign-in for unknown account %s", normalized)
            return AuthResult(success=False, error=INVALID_CREDENTIALS_ERROR)
        if not verify_password(password, record.get('password_hash')):
            logger.info("Password mismatch for %s", normalized)
            return AuthResult(success=False, error=INVALID_CREDENTIALS_ERROR)
        return AuthResult(success=True, user=auth_user_from_record(record))

    async def database_state(self) -> Dict[str, Any]:
        """Totals and a per-account summary of the identity store (no hashes)."""
        self.identity.clear_cache()
        records = await self.identity.list()
        users = [
            {
                'email': r.get('email'),
                'id': r.get('id'),
                'roles': r.get('roles', []),
                'created_at': r.get('created_at'),
            }
            for r in records
            if isinstance(r, dict)
        ]
        return {'total_users': len(users), 'users': users}

    async def clear_all_users(self) -> bool:
        if not self.allow_data_clear:
            logger.warning("clear_all_users blocked: data clearing is disabled in this environment")
            return False
        await self.identity.clear()
        logger.info("All identity records cleared")
        return True
