"""JWT access token creation and validation (ES256).

Used by the in-memory auth backend.  The hosted backend issues and
verifies its own tokens.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

# Ephemeral key pair: tokens do not survive a restart, neither do the
# in-memory accounts they refer to.
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "institute-service"
AUDIENCE = "institute-api"
ACCESS_TOKEN_TTL_MIN = 60


def create_access_token(*, sub: str, email: str, name: str = "") -> str:
    """Build and sign a JWT access token (sub, email, name, iss, aud, exp, iat, jti)."""
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "email": email,
        "name": name,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins the algorithm to ES256.  Raises jwt.InvalidTokenError (or a
    subclass such as ExpiredSignatureError) on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "email", "exp", "iat", "jti"]},
    )
