"""
===============================================================================
CRC CARD — identity/auth.py
===============================================================================

Module:
    Who is calling? (JWT bearer tokens -> actor UUID)

Responsibilities:
    - Verify access tokens: HS256 signature, `exp`, `sub` as a user UUID,
      `typ` (when present) equal to "access".
    - Mint access tokens for tests and local tooling. Production tokens come
      from the identity service sharing JWT_SECRET.
    - `require_actor()` dependency used by every /v1 route.

Collaborators:
    - crosscutting.config: secret, algorithm, TTL.
    - crosscutting.error_responses.unauthorized: 401 + WWW-Authenticate.
    - taskboard.context: actor_id in every log line of the request.

Notes:
    - The core receives a bare UUID; it never sees tokens.
    - Tokens are never logged.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

import jwt
from fastapi import Header, Request

from ..context import set_actor_context
from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import unauthorized

ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True, slots=True)
class AuthSettings:
    jwt_secret: str
    jwt_algorithm: str
    jwt_access_ttl_minutes: int

    @classmethod
    def current(cls) -> "AuthSettings":
        settings = get_settings()
        return cls(
            settings.jwt_secret,
            settings.jwt_algorithm,
            settings.jwt_access_ttl_minutes,
        )


def create_access_token(
    user_id: UUID, settings: AuthSettings | None = None
) -> tuple[str, int]:
    """Return (token, lifetime in seconds) for `user_id`."""
    cfg = settings or AuthSettings.current()
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=cfg.jwt_access_ttl_minutes)
    claims = {
        "sub": str(user_id),
        "typ": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    token = jwt.encode(claims, cfg.jwt_secret, algorithm=cfg.jwt_algorithm)
    return token, int(lifetime.total_seconds())


def decode_access_token(token: str, settings: AuthSettings | None = None) -> UUID:
    """Actor id carried by `token`; AppHTTPException(401) when unusable."""
    cfg = settings or AuthSettings.current()
    try:
        claims = jwt.decode(
            token,
            cfg.jwt_secret,
            algorithms=[cfg.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized("Token expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized("Invalid token.") from exc

    if claims.get("typ", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise unauthorized("Invalid token type.")
    try:
        return UUID(str(claims["sub"]))
    except ValueError as exc:
        raise unauthorized("Invalid token.") from exc


def _extract_bearer_token(authorization: str | None) -> str | None:
    scheme, _, credentials = (authorization or "").strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credentials.strip() or None


def require_actor() -> Callable:
    async def resolve_actor(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> UUID:
        token = _extract_bearer_token(authorization)
        if token is None:
            raise unauthorized("Missing bearer token.")
        actor_id = decode_access_token(token)
        request.state.actor_id = actor_id
        set_actor_context(str(actor_id))
        return actor_id

    return resolve_actor
