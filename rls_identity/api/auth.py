"""
JWT helpers: verifying end-user bearer tokens from the identity
provider, and issuing/reading the short-lived identity credential.
"""

from datetime import datetime, timedelta
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from flask import jsonify, request

from rls_identity import config
from rls_identity.models import ParameterSchema

IDENTITY_ALGORITHM = "HS256"

_jwks_client = None


def _signing_key(token: str):
    """Key for an IdP token: JWKS lookup when configured, else the shared secret."""
    global _jwks_client
    if config.IDP_JWKS_URL:
        if _jwks_client is None:
            _jwks_client = jwt.PyJWKClient(config.IDP_JWKS_URL)
        return _jwks_client.get_signing_key_from_jwt(token).key, ["RS256"]
    return config.IDP_SHARED_SECRET, ["HS256"]


def verify_user_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify an identity-provider bearer token and return its claims (or None)."""
    try:
        key, algorithms = _signing_key(token)
        if not key:
            return None
        options = {"verify_aud": bool(config.IDP_AUDIENCE)}
        return jwt.decode(
            token, key, algorithms=algorithms,
            audience=config.IDP_AUDIENCE or None, options=options,
        )
    except jwt.PyJWKClientError:
        return None
    except jwt.InvalidTokenError:
        return None


def user_required(f):
    """Decorator that requires an authenticated end user."""
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get("Authorization", "")
        if not auth_header:
            return jsonify({"error": "Authentication token is missing"}), 401

        parts = auth_header.split(" ")
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return jsonify({"error": "Invalid authorization header format"}), 401

        claims = verify_user_token(parts[1])
        if not claims:
            return jsonify({"error": "Invalid or expired token"}), 401

        request.user = claims
        return f(*args, **kwargs)

    return decorated


# ── Identity credential ──────────────────────────────────────────────

def issue_identity_token(identity: str, schema: ParameterSchema, subject: Optional[str]) -> Dict[str, Any]:
    """Sign a short-lived credential carrying *identity* for *schema*'s report."""
    now = datetime.utcnow()
    expires_at = now + timedelta(minutes=config.IDENTITY_TOKEN_MINUTES)
    payload = {
        "idn": identity,
        "rpt": schema.report_id,
        "ver": schema.version,
        "sub": subject or "",
        "iat": now,
        "exp": expires_at,
    }
    token = jwt.encode(payload, config.SECRET_KEY, algorithm=IDENTITY_ALGORITHM)
    return {"token": token, "expires_at": expires_at.isoformat()}


def read_identity_token(token: Any, schema: ParameterSchema) -> Optional[str]:
    """Return the EncodedIdentity inside *token*, or None if it must not be used.

    Expired, tampered, foreign-report and stale-version tokens all
    return None; callers deny every row in that case.
    """
    if not isinstance(token, str) or not token:
        return None
    try:
        payload = jwt.decode(
            token, config.SECRET_KEY, algorithms=[IDENTITY_ALGORITHM],
            options={"require": ["exp", "idn", "rpt", "ver"]},
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None

    if payload.get("rpt") != schema.report_id or payload.get("ver") != schema.version:
        return None
    identity = payload.get("idn")
    return identity if isinstance(identity, str) else None
