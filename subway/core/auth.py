"""Bearer token authentication for members.

Tokens are Auth0 RS256 JWTs. Signing keys come from the tenant's JWKS, which is
fetched at most once an hour; in DEBUG the keys installed by ``set_mock_jwks``
are used instead. ``get_current_member`` turns a verified token into a Member,
creating one the first time a ``sub`` is seen.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from subway.core.config import require_config, settings
from subway.core.database import get_db
from subway.models.member import Member
from subway.services.member_service import MemberService

require_config("AUTH0_DOMAIN", "AUTH0_API_AUDIENCE", "AUTH0_ALGORITHMS")

logger = structlog.get_logger(__name__)

security = HTTPBearer()

JWKS_TTL = timedelta(hours=1)
_RSA_KEY_FIELDS = ("kty", "kid", "use", "n", "e")

_mock_jwks: dict[str, Any] | None = None
_jwks_cache: tuple[datetime, dict[str, Any]] | None = None


def set_mock_jwks(jwks: dict[str, Any]) -> None:
    """Install the key set used to verify tokens in DEBUG mode."""
    if not settings.DEBUG:
        msg = "set_mock_jwks() can only be called in DEBUG mode"
        raise RuntimeError(msg)
    global _mock_jwks  # noqa: PLW0603
    _mock_jwks = jwks


def clear_jwks_cache() -> None:
    global _jwks_cache  # noqa: PLW0603
    _jwks_cache = None


async def get_jwks(domain: str) -> dict[str, Any]:
    """
    Return the tenant's JWKS, refetching once the cached copy is older than JWKS_TTL.

    Raises:
        HTTPException: 503 if the JWKS cannot be fetched
    """
    global _jwks_cache  # noqa: PLW0603
    now = datetime.now(UTC)
    if _jwks_cache is not None and now - _jwks_cache[0] < JWKS_TTL:
        return _jwks_cache[1]

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(f"https://{domain}/.well-known/jwks.json")
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("jwks_fetch_failed", domain=domain, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Unable to fetch JWKS from Auth0: {e!s}",
        ) from e

    jwks = response.json()
    _jwks_cache = (now, jwks)
    return jwks


async def _signing_key(token: str) -> dict[str, str]:
    """Find the RSA key named by the token's ``kid`` header."""
    kid = jwt.get_unverified_header(token).get("kid")
    if not kid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token missing 'kid' in header")

    if settings.DEBUG:
        if _mock_jwks is None:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Mock JWKS not configured for DEBUG mode",
            )
        jwks = _mock_jwks
    else:
        jwks = await get_jwks(settings.AUTH0_DOMAIN)

    key = next((key for key in jwks.get("keys", []) if key.get("kid") == kid), None)
    if key is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unable to find appropriate signing key")

    missing = [field for field in _RSA_KEY_FIELDS if field not in key]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"JWKS key is missing required fields: {', '.join(missing)}",
        )
    return {field: key[field] for field in _RSA_KEY_FIELDS}


async def verify_jwt(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict[str, Any]:
    """
    Check the bearer token's signature, audience, issuer and expiry.

    Returns:
        The token's claims

    Raises:
        HTTPException: 401 for any invalid token
    """
    token = credentials.credentials
    try:
        return jwt.decode(
            token,
            await _signing_key(token),
            algorithms=settings.AUTH0_ALGORITHMS,
            audience=settings.AUTH0_API_AUDIENCE,
            issuer=f"https://{settings.AUTH0_DOMAIN}/",
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {e!s}",
        ) from e


async def get_current_member(
    payload: dict[str, Any] = Depends(verify_jwt),
    db: AsyncSession = Depends(get_db),
) -> Member:
    """
    Resolve the calling member from the token's ``sub`` claim.

    The member id is bound to the structlog context, so every event logged
    while serving the request names the member it was made for.

    Raises:
        HTTPException: 401 if the token has no 'sub' claim
    """
    external_id = payload.get("sub")
    if not external_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token missing 'sub' claim")

    member = await MemberService(db).get_or_create_member(external_id, auth_provider="auth0")
    structlog.contextvars.bind_contextvars(member_id=str(member.id))
    return member
