"""
Tests for registration and login against an in-memory store.
"""

import threading
from unittest.mock import patch

import jwt
import pytest

from accounts.models import Role, UserRecord
from accounts.passwords import hash_password, verify_password
from utilities.errors import DuplicateError, InvalidCredentialsError, ValidationError

JANE = {"name": "Jane", "email": "jane@example.com", "password": "password1"}


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_returns_user_token(self, account_service, token_service):
        token = await account_service.register(dict(JANE))
        payload = token_service.verify(token)
        assert payload["role"] == Role.USER.value
        assert payload["id"]

    @pytest.mark.asyncio
    async def test_password_is_stored_hashed(self, account_service, user_repository):
        await account_service.register(dict(JANE))
        user = await user_repository.find_by_email("jane@example.com")
        assert user.password != "password1"
        assert user.password.startswith("$2b$")

    @pytest.mark.asyncio
    async def test_admin_key_grants_admin(self, account_service, token_service):
        token = await account_service.register(dict(JANE), admin_key="test-admin-key")
        assert token_service.verify(token)["role"] == Role.ADMIN.value

    @pytest.mark.asyncio
    async def test_wrong_admin_key_registers_user(self, account_service, token_service):
        token = await account_service.register(dict(JANE), admin_key="guess")
        assert token_service.verify(token)["role"] == Role.USER.value

    def test_no_configured_key_never_grants_admin(self, account_service):
        account_service.admin_signup_key = None
        assert account_service.resolve_role("") == Role.USER
        assert account_service.resolve_role("anything") == Role.USER

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, account_service):
        await account_service.register(dict(JANE))
        with pytest.raises(DuplicateError) as exc_info:
            await account_service.register({"name": "Other", "email": "jane@example.com", "password": "different1"})
        assert exc_info.value.status_code == 400
        assert exc_info.value.errors == [{"message": "User already exists"}]

    @pytest.mark.asyncio
    async def test_validation_lists_every_violation(self, account_service):
        with pytest.raises(ValidationError) as exc_info:
            await account_service.register({"name": "", "email": "nope", "password": "short"})
        error = exc_info.value
        assert error.status_code == 401
        assert [e["field"] for e in error.errors] == ["name", "email", "password"]
        assert error.errors[2]["message"] == "Please enter a password with 8 or more characters"

    @pytest.mark.asyncio
    async def test_missing_fields(self, account_service):
        with pytest.raises(ValidationError) as exc_info:
            await account_service.register({})
        assert len(exc_info.value.errors) == 3

    @pytest.mark.asyncio
    async def test_email_stored_as_submitted(self, account_service, user_repository):
        await account_service.register({"name": "Jane", "email": "Jane@Example.COM", "password": "password1"})

        stored = await user_repository.find_by_email("Jane@Example.COM")
        assert stored is not None
        assert stored.email == "Jane@Example.COM"

        # exact-match uniqueness: a differently cased domain is another account
        await account_service.register({"name": "Jane", "email": "Jane@example.com", "password": "password1"})
        assert await user_repository.find_by_email("Jane@example.com") is not None

    @pytest.mark.asyncio
    async def test_register_token_lives_one_hour(self, account_service):
        token = await account_service.register(dict(JANE))
        claims = jwt.decode(token, "test-secret", algorithms=["HS256"])
        assert claims["exp"] - claims["iat"] == 3600

    @pytest.mark.asyncio
    async def test_unique_index_backs_race(self, user_repository):
        record = UserRecord(name="Jane", email="jane@example.com", password="x")
        await user_repository.insert(record)
        with pytest.raises(DuplicateError):
            await user_repository.insert(record)


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_returns_long_lived_token(self, account_service, token_service):
        await account_service.register(dict(JANE))
        token = await account_service.login({"email": "jane@example.com", "password": "password1"})
        assert token_service.verify(token)["role"] == Role.USER.value

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, account_service):
        await account_service.register(dict(JANE))

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await account_service.login({"email": "jane@example.com", "password": "password2"})
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await account_service.login({"email": "ghost@example.com", "password": "password1"})

        assert wrong_password.value.to_dict() == unknown_email.value.to_dict()
        assert wrong_password.value.status_code == unknown_email.value.status_code == 400

    @pytest.mark.asyncio
    async def test_login_validation(self, account_service):
        with pytest.raises(ValidationError) as exc_info:
            await account_service.login({"email": "not-an-email"})
        error = exc_info.value
        assert error.status_code == 400
        assert {e["field"] for e in error.errors} == {"email", "password"}

    @pytest.mark.asyncio
    async def test_login_token_lives_one_hundred_hours(self, account_service):
        await account_service.register(dict(JANE))
        token = await account_service.login({"email": "jane@example.com", "password": "password1"})
        claims = jwt.decode(token, "test-secret", algorithms=["HS256"])
        assert claims["exp"] - claims["iat"] == 360000

    @pytest.mark.asyncio
    async def test_login_matches_email_exactly(self, account_service):
        await account_service.register({"name": "Jane", "email": "Jane@Example.COM", "password": "password1"})
        assert await account_service.login({"email": "Jane@Example.COM", "password": "password1"})
        with pytest.raises(InvalidCredentialsError):
            await account_service.login({"email": "Jane@example.com", "password": "password1"})

    @pytest.mark.asyncio
    async def test_bcrypt_runs_off_the_event_loop(self, account_service):
        loop_thread = threading.get_ident()
        threads = []

        def tracking_hash(password):
            threads.append(threading.get_ident())
            return hash_password(password, rounds=4)

        def tracking_verify(password, password_hash):
            threads.append(threading.get_ident())
            return verify_password(password, password_hash)

        with patch("accounts.service.hash_password", tracking_hash), \
                patch("accounts.service.verify_password", tracking_verify):
            await account_service.register(dict(JANE))
            await account_service.login({"email": "jane@example.com", "password": "password1"})

        assert len(threads) == 2
        assert loop_thread not in threads
