"""
Signed, time-limited bearer tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
import structlog

from utilities.errors import InvalidTokenError

logger = structlog.get_logger(__name__)


class TokenService:
    """
    Issues and verifies HS256 JWTs.

    The payload is carried in a ``user`` claim next to ``iat`` and ``exp``,
    so ``verify(issue(payload, ttl))`` hands back ``payload`` unchanged.
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("jwt_secret_blank")
        self._secret = secret
        self.algorithm = algorithm

    def issue(self, payload: Dict[str, Any], ttl_seconds: int) -> str:
        """
        Sign a token for the given payload.

        Args:
            payload: Claims identifying the user
            ttl_seconds: Lifetime of the token; may be negative in tests

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        claims = {
            "user": payload,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Check signature and expiry and return the original payload.

        Raises:
            InvalidTokenError: On a bad signature, malformed token or past expiry
        """
        if not token:
            raise InvalidTokenError()
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise InvalidTokenError()
        except jwt.InvalidTokenError as e:
            logger.info("Rejected invalid token", error=str(e))
            raise InvalidTokenError()

        payload = claims.get("user")
        if not isinstance(payload, dict):
            raise InvalidTokenError()
        return payload
