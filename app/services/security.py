"""Bearer-token helpers."""

import hashlib
from dataclasses import dataclass
from secrets import token_urlsafe

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError

password_hasher = PasswordHasher()

TOKEN_PREFIX = "atp"


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """Freshly generated bearer token.

    Attributes
    ----------
    plaintext : str
        Raw token, returned to the caller exactly once.
    token_hash : str
        Argon2 hash persisted for verification.
    token_lookup : str
        SHA-256 digest persisted for indexed lookup.
    """

    plaintext: str
    token_hash: str
    token_lookup: str


def issue_token() -> IssuedToken:
    """Generate a user bearer token and its stored forms.

    Returns
    -------
    IssuedToken
        Plaintext token with hash and lookup digest.
    """
    plaintext = f"{TOKEN_PREFIX}_{token_urlsafe(24)}"
    return IssuedToken(
        plaintext=plaintext,
        token_hash=password_hasher.hash(plaintext),
        token_lookup=lookup_hash(plaintext),
    )


def lookup_hash(token: str) -> str:
    """Compute a fast, non-secret hash for DB lookup.

    Parameters
    ----------
    token : str
        Raw token.

    Returns
    -------
    str
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def verify_token(token: str, token_hash: str) -> bool:
    """Verify a raw token against its stored hash.

    Parameters
    ----------
    token : str
        Raw token.
    token_hash : str
        Stored argon2 hash.

    Returns
    -------
    bool
        Whether the token matches.
    """
    try:
        return password_hasher.verify(token_hash, token)
    except (VerifyMismatchError, InvalidHashError):
        return False
