"""
auth — User authentication core.

Provides:
  • Versioned password hashing & verification (legacy HMAC, bcrypt)
  • Session → user identity resolution
  • Login with opportunistic hash upgrade
  • Registration validation & user creation
"""

from auth.identity import ANONYMOUS, Identity, IdentityResolver
from auth.login import LoginService, LoginStrategy
from auth.password import LATEST_VERSION, CredentialHasher, HashedPassword, HashVersion
from auth.registration import RegistrationService, Violation, validate_registration

__all__ = [
    "ANONYMOUS",
    "CredentialHasher",
    "HashVersion",
    "HashedPassword",
    "Identity",
    "IdentityResolver",
    "LATEST_VERSION",
    "LoginService",
    "LoginStrategy",
    "RegistrationService",
    "Violation",
    "validate_registration",
]
