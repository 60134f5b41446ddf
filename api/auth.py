"""
Bearer token authentication for the FastAPI API.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError

from accounts.models import AuthenticatedUser
from accounts.tokens import TokenService
from api.config import config
from utilities.errors import InvalidTokenError, UnauthorizedError

logger = structlog.get_logger(__name__)

# Security scheme; missing headers are handled below so they map to 401
security = HTTPBearer(auto_error=False)

token_service = TokenService(config.jwt_secret, config.jwt_algorithm)


def get_token_service() -> TokenService:
    return token_service


def extract_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    legacy_token: Optional[str],
) -> Optional[str]:
    """Prefer ``Authorization: Bearer``, fall back to ``x-auth-token``."""
    if credentials and credentials.credentials:
        return credentials.credentials
    if legacy_token:
        return legacy_token.strip() or None
    return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_auth_token: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> AuthenticatedUser:
    """
    Verify the request's bearer token.

    Returns:
        Identity decoded from the token

    Raises:
        UnauthorizedError: If no token is present or it fails verification
    """
    token = extract_token(credentials, x_auth_token)
    if token is None:
        raise UnauthorizedError("No token, authorization denied")

    try:
        payload = tokens.verify(token)
        return AuthenticatedUser.model_validate(payload)
    except (InvalidTokenError, PydanticValidationError):
        logger.warning("Rejected bearer token")
        raise UnauthorizedError("Token is not valid")
