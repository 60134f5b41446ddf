"""
Registration and login.
"""

import asyncio
from typing import Any, Dict, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from accounts.database import UserRepository
from accounts.models import (
    LOGIN_MESSAGES, REGISTER_MESSAGES,
    AuthenticatedUser, LoginRequest, RegisterRequest, Role, UserRecord
)
from accounts.passwords import hash_password, verify_password
from accounts.tokens import TokenService
from utilities.errors import (
    DuplicateError, InvalidCredentialsError, ValidationError, collect_violations
)

logger = structlog.get_logger(__name__)


class AccountService:
    """Registers users and exchanges credentials for bearer tokens."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        admin_signup_key: Optional[str] = None,
        register_ttl_seconds: int = 3600,
        login_ttl_seconds: int = 360000,
    ):
        self.users = users
        self.tokens = tokens
        self.admin_signup_key = admin_signup_key
        self.register_ttl_seconds = register_ttl_seconds
        self.login_ttl_seconds = login_ttl_seconds

    def resolve_role(self, admin_key: Optional[str]) -> Role:
        """Admin iff a signup key is configured and the caller presents it."""
        if admin_key and self.admin_signup_key and admin_key == self.admin_signup_key:
            return Role.ADMIN
        return Role.USER

    def _issue(self, user: UserRecord, ttl_seconds: int) -> str:
        identity = AuthenticatedUser(id=user.id, role=user.role)
        return self.tokens.issue(identity.to_claims(), ttl_seconds)

    async def register(self, payload: Dict[str, Any], admin_key: Optional[str] = None) -> str:
        """
        Register a new user and return a short-lived token.

        Args:
            payload: Body with name, email and password
            admin_key: Value of the admin-signup-key header, if any

        Returns:
            Signed token for the new user

        Raises:
            ValidationError: (401) listing every violated rule
            DuplicateError: If the email is already registered
        """
        try:
            request = RegisterRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(errors=collect_violations(e, REGISTER_MESSAGES), status_code=401)

        if await self.users.find_by_email(request.email):
            logger.info("Registration rejected, email taken", email=request.email)
            raise DuplicateError("User already exists")

        user = UserRecord(
            name=request.name,
            email=request.email,
            password=await asyncio.to_thread(hash_password, request.password),
            role=self.resolve_role(admin_key),
        )
        user = await self.users.insert(user)
        logger.info("User registered", user_id=user.id, role=user.role.name)

        return self._issue(user, self.register_ttl_seconds)

    async def login(self, payload: Dict[str, Any]) -> str:
        """
        Exchange email and password for a long-lived token.

        Raises:
            ValidationError: (400) on a malformed email or missing password
            InvalidCredentialsError: On unknown email or wrong password alike
        """
        try:
            request = LoginRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(errors=collect_violations(e, LOGIN_MESSAGES))

        user = await self.users.find_by_email(request.email)
        # bcrypt is CPU bound; keep it off the event loop
        matched = user is not None and await asyncio.to_thread(verify_password, request.password, user.password)
        if not matched:
            logger.info("Login failed", email=request.email, known_email=user is not None)
            raise InvalidCredentialsError()

        logger.info("User logged in", user_id=user.id)
        return self._issue(user, self.login_ttl_seconds)
