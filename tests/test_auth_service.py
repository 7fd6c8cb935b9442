"""Tests for AuthService: registration, tokens, email verification and passwords."""
import pytest

from projecthub.core.exceptions import ConflictError, UnauthenticatedError, ValidationError
from projecthub.core.security import verify_password
from projecthub.models.user import LoginType, UserRole
from projecthub.schemas.user import RegisterRequest
from projecthub.services.auth_service import AuthService
from projecthub.services.integrations.oauth import OAuthProfile

from tests.conftest import PASSWORD, make_user


def register_request(email="jane@acme.io", password="hunter22") -> RegisterRequest:
    return RegisterRequest(name="Jane", email=email, password=password)


class TestRegister:
    async def test_register_sends_verification(self, session, mail_outbox):
        data = await AuthService(session).register(register_request())

        user = data["user"]
        assert user.role == UserRole.USER
        assert user.is_email_verified is False
        assert data["_dev_verification_token"] in mail_outbox.get_last_email()["body"]
        assert mail_outbox.get_last_email()["to"] == "jane@acme.io"

    async def test_verify_email(self, session):
        service = AuthService(session)
        data = await service.register(register_request())

        assert await service.verify_email(data["_dev_verification_token"]) is True

        user = await service.user_repo.get(data["user"].id)
        assert user.is_email_verified is True
        assert user.email_verification_token is None

        with pytest.raises(ValidationError):
            await service.verify_email(data["_dev_verification_token"])

    async def test_resend_for_verified_user(self, session):
        user = await make_user(session, "done@acme.io", is_email_verified=True)
        with pytest.raises(ConflictError):
            await AuthService(session).resend_verification(user)


class TestLogin:
    async def test_login_issues_tokens(self, session):
        user = await make_user(session, "jane@acme.io")

        data = await AuthService(session).login("JANE@acme.io", PASSWORD)

        assert data.user.id == user.id
        assert data.access_token
        assert user.refresh_token == data.refresh_token

    async def test_wrong_password(self, session):
        await make_user(session, "jane@acme.io")
        with pytest.raises(UnauthenticatedError):
            await AuthService(session).login("jane@acme.io", "nope")

    async def test_unknown_email(self, session):
        with pytest.raises(UnauthenticatedError):
            await AuthService(session).login("ghost@acme.io", PASSWORD)

    async def test_social_account_cannot_use_password(self, session):
        await make_user(session, "jane@acme.io", login_type=LoginType.GOOGLE)
        with pytest.raises(ValidationError):
            await AuthService(session).login("jane@acme.io", PASSWORD)

    async def test_access_token_resolves_user(self, session):
        user = await make_user(session, "jane@acme.io")
        service = AuthService(session)
        data = await service.login("jane@acme.io", PASSWORD)

        assert (await service.get_user_from_access_token(data.access_token)).id == user.id
        with pytest.raises(UnauthenticatedError):
            await service.get_user_from_access_token(data.refresh_token)
        with pytest.raises(UnauthenticatedError):
            await service.get_user_from_access_token(None)


class TestRefresh:
    async def test_rotation_invalidates_old_token(self, session):
        await make_user(session, "jane@acme.io")
        service = AuthService(session)
        first = await service.login("jane@acme.io", PASSWORD)

        second = await service.refresh_access_token(first.refresh_token)

        assert second["refresh_token"] != first.refresh_token
        with pytest.raises(UnauthenticatedError):
            await service.refresh_access_token(first.refresh_token)

    async def test_logout_revokes_refresh_token(self, session):
        user = await make_user(session, "jane@acme.io")
        service = AuthService(session)
        data = await service.login("jane@acme.io", PASSWORD)

        await service.logout(user)

        with pytest.raises(UnauthenticatedError):
            await service.refresh_access_token(data.refresh_token)

    async def test_access_token_is_not_a_refresh_token(self, session):
        await make_user(session, "jane@acme.io")
        service = AuthService(session)
        data = await service.login("jane@acme.io", PASSWORD)

        with pytest.raises(UnauthenticatedError):
            await service.refresh_access_token(data.access_token)


class TestPasswords:
    async def test_forgot_password_unknown_email(self, session, mail_outbox):
        assert await AuthService(session).forgot_password("ghost@acme.io") == {}
        assert mail_outbox.sent_emails == []

    async def test_reset_flow(self, session, mail_outbox):
        user = await make_user(session, "jane@acme.io")
        service = AuthService(session)
        await service.login("jane@acme.io", PASSWORD)

        data = await service.forgot_password("jane@acme.io")
        assert data["_dev_reset_token"] in mail_outbox.get_last_email()["body"]

        await service.reset_password(data["_dev_reset_token"], "brand-new")

        assert verify_password("brand-new", user.password_hash)
        assert user.refresh_token is None
        with pytest.raises(ValidationError):
            await service.reset_password(data["_dev_reset_token"], "again")

    async def test_change_password(self, session):
        user = await make_user(session, "jane@acme.io")
        service = AuthService(session)

        with pytest.raises(ValidationError):
            await service.change_password(user, "wrong", "brand-new")

        await service.change_password(user, PASSWORD, "brand-new")
        assert verify_password("brand-new", user.password_hash)


class TestSocialLogin:
    async def test_new_user_is_created_verified(self, session):
        profile = OAuthProfile(email="octo@acme.io", name="Octo", avatar_url="https://img/octo.png")

        user, access_token, refresh_token = await AuthService(session).social_login(profile, LoginType.GITHUB)

        assert user.login_type == LoginType.GITHUB
        assert user.is_email_verified is True
        assert user.avatar_url == "https://img/octo.png"
        assert user.refresh_token == refresh_token
        assert access_token

    async def test_existing_social_user_logs_in(self, session):
        existing = await make_user(session, "octo@acme.io", login_type=LoginType.GITHUB)

        user, _, _ = await AuthService(session).social_login(OAuthProfile(email="octo@acme.io"), LoginType.GITHUB)

        assert user.id == existing.id

    async def test_other_login_type_is_rejected(self, session):
        await make_user(session, "octo@acme.io")
        with pytest.raises(ValidationError):
            await AuthService(session).social_login(OAuthProfile(email="octo@acme.io"), LoginType.GOOGLE)
