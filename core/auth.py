# =============================================================================
# core/auth.py  —  Short-Lived Token Minting
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Meshes authenticates machine keys with short-lived HS256 JWTs.  Every
#   outbound request gets a FRESH token, signed with the secret key and
#   valid for 30 seconds.  The secret itself is never transmitted.
#
# TOKEN LAYOUT:
#   header:  {"alg": "HS256", "typ": "JWT", "kid": <access key>}
#   claims:  {"org": <org id>,
#             "iss": "urn:meshes:m2m:<access key>",
#             "aud": "meshes-api",
#             "iat": <now>,
#             "exp": <now + 30>}
#
# NO CACHING:
#   A token is minted per call and thrown away.  30 seconds is shorter than
#   any realistic agent session, so a reused token would eventually be
#   presented right at its expiry edge.
#
# See: https://meshes.io/docs/api/authentication
# =============================================================================

import time
from typing import Optional

import jwt

from core.errors import MeshesTransportError
from core.models import MeshesConfig

TOKEN_ALGORITHM = "HS256"
TOKEN_AUDIENCE = "meshes-api"
TOKEN_TTL_SECONDS = 30
ISSUER_PREFIX = "urn:meshes:m2m:"


def issuer_for(access_key: str) -> str:
    """Return the issuer string Meshes expects for a machine key."""
    return f"{ISSUER_PREFIX}{access_key}"


def mint_token(config: MeshesConfig, now: Optional[float] = None) -> str:
    """Sign a 30-second bearer token for one outbound request.

    Args:
        config: The machine-key credentials.
        now: Issued-at time as a UNIX timestamp.  Defaults to the current
             time; pass a value only to pin the clock (tests).

    Returns:
        A compact JWT: three base64url segments joined by periods.

    Raises:
        MeshesTransportError: The secret could not be encoded, or PyJWT
            rejected the key/algorithm.  Never falls back to an unsigned call.
    """
    issued_at = int(time.time() if now is None else now)
    claims = {
        "org": config.org_id,
        "iss": issuer_for(config.access_key),
        "aud": TOKEN_AUDIENCE,
        "iat": issued_at,
        "exp": issued_at + TOKEN_TTL_SECONDS,
    }
    headers = {"typ": "JWT", "kid": config.access_key}

    try:
        key = config.secret_key.encode("utf-8")
        return jwt.encode(claims, key, algorithm=TOKEN_ALGORITHM, headers=headers)
    except (UnicodeEncodeError, AttributeError, TypeError, jwt.PyJWTError) as exc:
        raise MeshesTransportError(f"Could not mint Meshes token: {exc}") from exc
