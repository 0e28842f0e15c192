"""
Security helpers for password hashing and session tokens.

Session tokens are JSON Web Tokens signed with HMAC‑SHA256.  A token
carries the user's claims (``username``, ``email``, ``id``) under the
``data`` key together with an issue time (``iat``) and an expiration
timestamp (``exp``) two hours later.  The signing key comes from the
``JWT_SECRET_KEY`` environment variable and is loaded once, when the
application is created; a missing key aborts startup.

Passwords are hashed with PBKDF2‑HMAC‑SHA256 and a random per‑password
salt.  Both signature and hash checks use ``hmac.compare_digest``.

Token problems never fail a request on their own.  ``resolve_identity``
turns an invalid or expired token into an anonymous identity; the
operations that need a user raise ``AuthenticationError`` themselves.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any, Dict, Mapping, Optional

from fastapi import Request

from .config import settings


logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000
TOKEN_MAX_AGE_SECONDS = 2 * 60 * 60

_signing_key: Optional[str] = None


class InvalidTokenError(Exception):
    """Raised when a token is malformed, forged or expired."""


def load_signing_key() -> str:
    """Read the signing key from the settings and cache it.

    Raises ``RuntimeError`` when ``JWT_SECRET_KEY`` is not configured;
    the application factory calls this so the failure happens at
    startup rather than on the first login.
    """
    global _signing_key
    if not settings.secret_key:
        raise RuntimeError("JWT_SECRET_KEY is not configured; refusing to start")
    _signing_key = settings.secret_key
    return _signing_key


def _get_signing_key() -> str:
    return _signing_key if _signing_key is not None else load_signing_key()


def _now() -> int:
    return int(time.time())


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = '=' * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC‑SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(claims: Mapping[str, Any], expires_delta: Optional[int] = None) -> str:
    """Create a signed token embedding ``claims``.

    Parameters
    ----------
    claims : Mapping
        Identity of the user, e.g. ``{"username": ..., "email": ...,
        "id": ...}``.  Stored under the ``data`` key of the payload.
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60`` (two hours).

    Returns
    -------
    str
        A token of the form ``header.payload.signature``.
    """
    issued_at = _now()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    payload = {"data": dict(claims), "iat": issued_at, "exp": issued_at + exp_seconds}
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(',', ':')).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(payload, separators=(',', ':')).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, _get_signing_key()))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify a token and return the claims it carries.

    Checks the HMAC signature, the ``exp`` field and that the token is
    not older than two hours.  Any failure raises
    ``InvalidTokenError``.
    """
    parts = token.split('.')
    if len(parts) != 3:
        raise InvalidTokenError("Malformed token")
    header_b64, payload_b64, signature_b64 = parts
    try:
        header = json.loads(_b64_url_decode(header_b64).decode("utf-8"))
        actual_sig = _b64_url_decode(signature_b64)
        payload = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidTokenError("Malformed token") from exc

    if not isinstance(header, dict) or header.get("alg") != settings.algorithm:
        raise InvalidTokenError("Unsupported token algorithm")
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, _get_signing_key())
    if not hmac.compare_digest(expected_sig, actual_sig):
        raise InvalidTokenError("Invalid token signature")

    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise InvalidTokenError("Token carries no claims")
    now = _now()
    try:
        exp = int(payload["exp"])
        iat = int(payload.get("iat", exp - TOKEN_MAX_AGE_SECONDS))
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError("Token has no expiration") from exc
    if exp <= now:
        raise InvalidTokenError("Token expired")
    if now - iat >= TOKEN_MAX_AGE_SECONDS:
        raise InvalidTokenError("Token older than maximum age")
    return payload["data"]


def extract_token(request: Request, body: Optional[Mapping[str, Any]] = None) -> Optional[str]:
    """Find the session token sent with a request.

    The token may be sent as a ``token`` field of the JSON body, as a
    ``token`` query parameter, or in the ``Authorization`` header.  The
    header wins when present; a scheme prefix such as ``Bearer`` is
    dropped by keeping only the last space‑separated part.  Returns
    ``None`` for anonymous requests.
    """
    token = (body or {}).get("token") or request.query_params.get("token")
    authorization = request.headers.get("authorization")
    if authorization:
        token = authorization.split(" ")[-1].strip()
    return token or None


def resolve_identity(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """Return the claims of ``token`` or ``None`` for an anonymous request."""
    if not token:
        return None
    try:
        return decode_access_token(token)
    except InvalidTokenError as exc:
        logger.warning("Invalid token: %s", exc)
        return None


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    A 16‑byte random salt is generated for each password.  The
    resulting string contains the salt and hash separated by a ``$``
    (salt in hex, then hash in hex).
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored salt+hash string.

    Returns ``False`` for a mismatch and for a stored value that is not
    in the ``salt$hash`` format.
    """
    try:
        salt_hex, hash_hex = hashed_password.split('$', 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except (AttributeError, ValueError):
        return False
    dk = hashlib.pbkdf2_hmac('sha256', plain_password.encode('utf-8'), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
