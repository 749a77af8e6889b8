from .auth import AuthService, USERS_COLLECTION
from .identity import IdentityStore, IDENTITY_KEY
from .models import AuthResult, AuthUser, SignInPayload, SignUpPayload
from .passwords import hash_password, verify_password
from .reconcile import ExpectedAccount, ReconcileReport, reconcile

__all__ = [
    "AuthService",
    "USERS_COLLECTION",
    "IdentityStore",
    "IDENTITY_KEY",
    "AuthResult",
    "AuthUser",
    "SignInPayload",
    "SignUpPayload",
    "hash_password",
    "verify_password",
    "ExpectedAccount",
    "ReconcileReport",
    "reconcile",
]
