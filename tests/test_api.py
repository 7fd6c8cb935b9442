"""
HTTP level tests: routing, the response envelope and error mapping.
"""
import uuid

from projecthub.config import settings
from projecthub.models.user import UserRole
from projecthub.services.integrations.oauth import GitHubOAuthStrategy, OAuthConfig
from projecthub.main import app

from tests.conftest import PASSWORD, auth_headers

API = settings.API_PREFIX


def assert_error(response, status_code: int):
    body = response.json()
    assert response.status_code == status_code
    assert body["statusCode"] == status_code
    assert body["success"] is False
    assert isinstance(body["message"], str)
    return body


class TestEnvelope:
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_success_envelope(self, client, member):
        response = await client.get(f"{API}/users/current-user", headers=auth_headers(member))

        body = response.json()
        assert response.status_code == 200
        assert body["statusCode"] == 200
        assert body["success"] is True
        assert body["data"]["email"] == "dev@acme.io"
        assert "password_hash" not in body["data"]
        assert "refresh_token" not in body["data"]

    async def test_missing_token(self, client):
        assert_error(await client.get(f"{API}/users/current-user"), 401)

    async def test_validation_error_is_400(self, client, member):
        response = await client.post(f"{API}/projects/", json={"name": ""}, headers=auth_headers(member))
        body = assert_error(response, 400)
        assert body["errors"]

    async def test_not_found(self, client, member):
        response = await client.get(f"{API}/projects/{uuid.uuid4()}", headers=auth_headers(member))
        assert_error(response, 404)


class TestAuthRoutes:
    async def test_register_login_refresh(self, client):
        response = await client.post(
            f"{API}/users/register",
            json={"name": "Jane", "email": "jane@acme.io", "password": "hunter22"}
        )
        assert response.status_code == 201
        assert response.json()["data"]["user"]["role"] == UserRole.USER

        response = await client.post(f"{API}/users/login", json={"email": "jane@acme.io", "password": "hunter22"})
        data = response.json()["data"]
        assert response.status_code == 200
        assert response.cookies.get("accessToken") == data["access_token"]

        response = await client.post(f"{API}/users/refresh-token", json={"refresh_token": data["refresh_token"]})
        assert response.status_code == 200
        assert response.json()["data"]["refresh_token"] != data["refresh_token"]

    async def test_register_ignores_role(self, client):
        response = await client.post(
            f"{API}/users/register",
            json={"name": "Eve", "email": "eve@acme.io", "password": "hunter22", "role": "SUPERADMIN"}
        )
        assert response.json()["data"]["user"]["role"] == UserRole.USER

    async def test_duplicate_registration(self, client, member):
        response = await client.post(
            f"{API}/users/register",
            json={"name": "Dev", "email": member.email, "password": "hunter22"}
        )
        assert_error(response, 409)

    async def test_bad_credentials(self, client, member):
        response = await client.post(f"{API}/users/login", json={"email": member.email, "password": "wrong"})
        assert_error(response, 401)

    async def test_forgot_password_does_not_reveal_accounts(self, client, member):
        known = await client.post(f"{API}/users/forgot-password", json={"email": member.email})
        unknown = await client.post(f"{API}/users/forgot-password", json={"email": "ghost@acme.io"})
        assert known.status_code == unknown.status_code == 200
        assert known.json()["message"] == unknown.json()["message"]

    async def test_change_password(self, client, member):
        response = await client.post(
            f"{API}/users/change-password",
            json={"old_password": PASSWORD, "new_password": "brand-new"},
            headers=auth_headers(member)
        )
        assert response.status_code == 200

    async def test_unknown_social_provider(self, client):
        assert_error(await client.get(f"{API}/users/myspace"), 404)

    async def test_social_redirect_sets_state(self, client):
        app.state.oauth_registry.register(GitHubOAuthStrategy(OAuthConfig(
            client_id="id", client_secret="secret", redirect_uri="http://test/callback"
        )))

        response = await client.get(f"{API}/users/github")

        assert response.status_code == 307
        assert response.headers["location"].startswith(GitHubOAuthStrategy.AUTH_URL)
        assert response.cookies.get("oauthState")

    async def test_callback_with_wrong_state(self, client):
        app.state.oauth_registry.register(GitHubOAuthStrategy(OAuthConfig(
            client_id="id", client_secret="secret", redirect_uri="http://test/callback"
        )))

        response = await client.get(f"{API}/users/github/callback", params={"code": "c", "state": "forged"})

        assert_error(response, 400)


class TestCompanyRoutes:
    async def test_create_and_get(self, client, superadmin):
        response = await client.post(
            f"{API}/companies/",
            json={"name": "Globex", "email": "info@globex.io"},
            headers=auth_headers(superadmin)
        )
        company = response.json()["data"]["company"]
        assert response.status_code == 201
        assert company["owner"]["id"] == str(superadmin.id)

        response = await client.get(f"{API}/companies/{company['id']}", headers=auth_headers(superadmin))
        assert response.json()["data"]["company"]["name"] == "Globex"

    async def test_admin_cannot_create_company(self, client, admin):
        response = await client.post(
            f"{API}/companies/", json={"name": "Globex", "email": "info@globex.io"}, headers=auth_headers(admin)
        )
        assert_error(response, 403)

    async def test_create_and_list_users(self, client, admin, company):
        response = await client.post(
            f"{API}/companies/create-user",
            json={"name": "Hire", "email": "hire@acme.io", "password": "changeme1"},
            headers=auth_headers(admin)
        )
        assert response.status_code == 201
        assert response.json()["data"]["user"]["company_id"] == str(company.id)

        response = await client.get(f"{API}/companies/get-users", headers=auth_headers(admin))
        emails = [u["email"] for u in response.json()["data"]["users"]]
        assert "hire@acme.io" in emails

    async def test_change_role_rejects_superadmin(self, client, admin, member):
        response = await client.patch(
            f"{API}/companies/{member.id}/change-role", json={"role": "SUPERADMIN"}, headers=auth_headers(admin)
        )
        assert_error(response, 403)

    async def test_change_role_same_role(self, client, admin, member):
        response = await client.patch(
            f"{API}/companies/{member.id}/change-role", json={"role": "USER"}, headers=auth_headers(admin)
        )
        assert_error(response, 409)

    async def test_patch_rejects_null_name(self, client, superadmin, company):
        response = await client.patch(
            f"{API}/companies/{company.id}", json={"name": None}, headers=auth_headers(superadmin)
        )
        assert_error(response, 400)


class TestProjectAndFeatureRoutes:
    async def test_project_lifecycle(self, client, member):
        headers = auth_headers(member)

        response = await client.post(f"{API}/projects/", json={"name": "Website"}, headers=headers)
        project_id = response.json()["data"]["project"]["id"]
        assert response.status_code == 201

        response = await client.post(
            f"{API}/features/", json={"title": "Login", "project_id": project_id}, headers=headers
        )
        feature_id = response.json()["data"]["feature"]["id"]
        assert response.status_code == 201

        response = await client.get(f"{API}/projects/", params={"search": "web"}, headers=headers)
        body = response.json()
        assert body["message"] == "Found 1 project"
        assert body["data"]["projects"][0]["features"][0]["id"] == feature_id

        response = await client.patch(f"{API}/features/{feature_id}/toggle-completion", headers=headers)
        assert response.json()["data"]["feature"]["is_completed"] is True

        response = await client.delete(f"{API}/projects/{project_id}", headers=headers)
        assert response.json()["data"] == {"deleted_project": project_id, "deleted_features": 1}

        assert_error(await client.get(f"{API}/features/{feature_id}", headers=headers), 404)

    async def test_list_features_with_filters(self, client, member):
        headers = auth_headers(member)
        response = await client.post(f"{API}/projects/", json={"name": "Website"}, headers=headers)
        project_id = response.json()["data"]["project"]["id"]
        for title, priority in (("Login", "high"), ("Footer", "low")):
            await client.post(
                f"{API}/features/",
                json={"title": title, "project_id": project_id, "priority": priority},
                headers=headers
            )

        response = await client.get(
            f"{API}/features/project/{project_id}", params={"priority": "high"}, headers=headers
        )

        assert [f["title"] for f in response.json()["data"]["features"]] == ["Login"]

    async def test_invalid_sort_field(self, client, member):
        response = await client.get(
            f"{API}/features/project/{uuid.uuid4()}", params={"sort_by": "password"}, headers=auth_headers(member)
        )
        assert_error(response, 400)

    async def test_members_route(self, client, member, admin):
        headers = auth_headers(member)
        response = await client.post(f"{API}/projects/", json={"name": "Website"}, headers=headers)
        project_id = response.json()["data"]["project"]["id"]

        response = await client.post(
            f"{API}/projects/{project_id}/members", json={"user_id": str(admin.id)}, headers=headers
        )
        assert [m["id"] for m in response.json()["data"]["project"]["members"]] == [str(admin.id)]

        response = await client.request(
            "DELETE", f"{API}/projects/{project_id}/members", json={"user_id": str(admin.id)}, headers=headers
        )
        assert response.json()["data"]["project"]["members"] == []
