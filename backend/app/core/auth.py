"""
Identity provider adapter: session token verification middleware and dependencies
"""
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

import jwt
from fastapi import Request, Response
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import get_settings
from app.core.errors import UnauthorizedError
from app.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    """Caller identity resolved from a verified session token"""
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@lru_cache()
def _get_jwks_client(url: str) -> jwt.PyJWKClient:
    """JWKS client cached per URL"""
    return jwt.PyJWKClient(url)


def _verification_key(token: str) -> Any:
    settings = get_settings()
    if settings.identity_jwt_key:
        return settings.identity_jwt_key
    return _get_jwks_client(settings.identity_jwks_url).get_signing_key_from_jwt(token).key


def verify_session_token(token: str) -> Identity:
    """
    Verify a session token issued by the identity provider

    Args:
        token: Encoded JWT

    Returns:
        Identity built from the token claims

    Raises:
        jwt.InvalidTokenError: If the token is expired, badly signed or has no subject
    """
    settings = get_settings()
    options = {"require": ["sub"], "verify_aud": bool(settings.identity_audience)}
    payload = jwt.decode(
        token,
        _verification_key(token),
        algorithms=settings.identity_jwt_algorithms_list,
        issuer=settings.identity_issuer,
        audience=settings.identity_audience,
        options=options,
    )

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise jwt.InvalidTokenError("Token subject must be a non-empty string")

    return Identity(
        user_id=subject,
        email=payload.get("email"),
        full_name=payload.get("name"),
        claims=payload,
    )


def extract_session_token(request: Request) -> Optional[str]:
    """Read the session token from the Authorization header or the session cookie"""
    authorization = request.headers.get("authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    return request.cookies.get(get_settings().identity_session_cookie) or None


class IdentityMiddleware(BaseHTTPMiddleware):
    """Resolve the caller identity once per request and attach it to request.state"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        identity = None
        token = extract_session_token(request)
        if token:
            try:
                # JWKS lookups block on HTTP
                identity = await run_in_threadpool(verify_session_token, token)
            except jwt.ExpiredSignatureError:
                logger.info("Session token expired")
            except jwt.PyJWKClientError as e:
                logger.warning(f"Could not fetch token signing key: {e}")
            except jwt.InvalidTokenError as e:
                logger.warning(f"Invalid session token: {e}")

        request.state.identity = identity
        if identity:
            LoggingConfig.set_context(user_id=identity.user_id)

        return await call_next(request)


async def get_current_identity_optional(request: Request) -> Optional[Identity]:
    """
    Get caller identity if authenticated, otherwise return None (no exception)
    """
    return getattr(request.state, "identity", None)


async def get_current_identity(request: Request) -> Identity:
    """
    Require authentication: return Identity or raise 401
    """
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise UnauthorizedError()
    return identity
