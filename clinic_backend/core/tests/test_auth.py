"""Tests for the authentication endpoints.

- POST /api/auth/login/
- POST /api/auth/refresh/
- GET  /api/auth/me/
- GET  /api/health/
"""

from __future__ import annotations

import jwt
from django.conf import settings
from django.test import TestCase

from rest_framework import status

from clinic_backend.core.models import Role
from clinic_backend.core.tests.factories import PASSWORD, api_client, make_user


def _decode(token: str) -> dict:
    return jwt.decode(
        token,
        settings.SIMPLE_JWT.get("SIGNING_KEY", settings.SECRET_KEY),
        algorithms=[settings.SIMPLE_JWT.get("ALGORITHM", "HS256")],
    )


class AuthenticationTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.admin = make_user("admin_auth", Role.ADMIN)
        self.dentist = make_user("dentist_auth", Role.DENTIST, first_name="Ada", last_name="Molar")
        self.inactive = make_user("inactive_auth", Role.DENTIST, is_active=False)
        self.client = api_client()

    def _login(self, username, password=PASSWORD):
        return self.client.post(
            "/api/auth/login/",
            {"username": username, "password": password},
            format="json",
        )

    # ========== LOGIN ==========

    def test_login_returns_tokens_and_user(self):
        response = self._login("admin_auth")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)
        user = response.data["user"]
        self.assertEqual(user["id"], self.admin.id)
        self.assertEqual(user["email"], "admin_auth@example.com")
        self.assertEqual(user["role"]["name"], Role.ADMIN)

    def test_login_dentist_returns_dentist_role(self):
        response = self._login("dentist_auth")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["user"]["role"]["name"], Role.DENTIST)

    def test_login_rejects_bad_credentials(self):
        self.assertEqual(self._login("admin_auth", "WrongPassword!").status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._login("nobody").status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_inactive_user_rejected(self):
        response = self._login("inactive_auth")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertNotIn("access", response.data)

    def test_login_missing_fields_returns_400(self):
        response = self.client.post("/api/auth/login/", {"username": "admin_auth"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post("/api/auth/login/", {"password": PASSWORD}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    # ========== TOKENS ==========

    def test_access_token_carries_user_id(self):
        access = self._login("admin_auth").data["access"]

        # Numeric claims may come back as strings depending on the JWT backend.
        self.assertEqual(int(_decode(access)["user_id"]), self.admin.id)

    def test_refresh_token_carries_role(self):
        refresh = self._login("dentist_auth").data["refresh"]

        self.assertEqual(_decode(refresh)["role"], Role.DENTIST)

    def test_refresh_returns_new_access_token(self):
        refresh = self._login("admin_auth").data["refresh"]

        response = self.client.post("/api/auth/refresh/", {"refresh": refresh}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["access"])

    def test_refresh_invalid_or_missing_token_returns_400(self):
        response = self.client.post("/api/auth/refresh/", {"refresh": "not-a-token"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post("/api/auth/refresh/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    # ========== ME ==========

    def test_me_with_bearer_token(self):
        access = self._login("dentist_auth").data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        response = self.client.get("/api/auth/me/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["id"], self.dentist.id)
        self.assertEqual(response.data["role"]["name"], Role.DENTIST)
        self.assertEqual(response.data["calendar_color"], "#1E90FF")

    def test_me_without_token_returns_401(self):
        self.assertEqual(self.client.get("/api/auth/me/").status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_with_invalid_token_returns_401(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer invalid")

        self.assertEqual(self.client.get("/api/auth/me/").status_code, status.HTTP_401_UNAUTHORIZED)

    def test_health_requires_no_auth(self):
        response = self.client.get("/api/health/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["status"], "ok")


class UserWithoutRoleTest(TestCase):
    """A user without a role can sign in but reaches no clinic data."""

    databases = {"default"}

    def setUp(self):
        self.user = make_user("norole_auth", None)
        self.client = api_client()

    def test_login_succeeds_with_null_role(self):
        response = self.client.post(
            "/api/auth/login/",
            {"username": "norole_auth", "password": PASSWORD},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data["user"]["role"])

    def test_domain_endpoints_are_forbidden(self):
        client = api_client(self.user)

        for url in ("/api/patients/", "/api/appointments/", "/api/invoices/", "/api/treatments/"):
            with self.subTest(url=url):
                self.assertEqual(client.get(url).status_code, status.HTTP_403_FORBIDDEN)
