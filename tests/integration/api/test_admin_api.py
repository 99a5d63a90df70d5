"""
Integration tests for the admin API.
"""

import uuid
from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from accounts.infrastructure.models import AdminApiKey
from core.domain.value_objects import KeyDuration
from licenses.infrastructure.models import LicenseKey as LicenseKeyModel


@pytest.mark.django_db
@pytest.mark.integration
class TestAdminAuthentication:
    """Admin routes require a valid X-API-Key."""

    def test_missing_api_key(self, api_client):
        response = api_client.get(reverse("admin_api:list-keys"))

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "MISSING_API_KEY"

    def test_invalid_api_key(self, api_client):
        api_client.credentials(HTTP_X_API_KEY="not-a-key")

        response = api_client.get(reverse("admin_api:list-keys"))

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_API_KEY"

    def test_expired_api_key(self, api_client):
        api_key = AdminApiKey(name="old", expires_at=timezone.now() - timedelta(days=1))
        api_key.save()
        api_client.credentials(HTTP_X_API_KEY=api_key._raw_key)  # pylint: disable=protected-access

        response = api_client.get(reverse("admin_api:list-keys"))

        assert response.status_code == 401


@pytest.mark.django_db
@pytest.mark.integration
class TestKeyAdministration:
    """Integration tests for key generation and maintenance."""

    def test_generate_keys(self, admin_client):
        response = admin_client.post(
            reverse("admin_api:generate-keys"), {"count": 3, "duration": "1 week"}, format="json"
        )

        assert response.status_code == 201
        body = response.json()
        assert len(body["keys"]) == 3
        assert body["errors"] == []
        for item in body["keys"]:
            assert item["key"].startswith("EPIE1W-")
            assert item["state"] == "available"
            assert item["can_be_used_for_registration"] is True
        assert LicenseKeyModel.objects.count() == 3

    @pytest.mark.parametrize(
        "payload",
        [{"count": 0, "duration": "1d"}, {"count": 2, "duration": "1 year"}, {"duration": "1d"}],
    )
    def test_generate_keys_validation(self, admin_client, payload):
        response = admin_client.post(reverse("admin_api:generate-keys"), payload, format="json")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        assert LicenseKeyModel.objects.count() == 0

    def test_reserve_key(self, admin_client, make_user):
        buyer = make_user()

        response = admin_client.post(
            reverse("admin_api:reserve-key"),
            {"user_id": str(buyer.id), "duration": "lifetime"},
            format="json",
        )

        assert response.status_code == 201
        body = response.json()
        assert body["purchased_by_user_id"] == str(buyer.id)
        assert body["owner_user_id"] is None
        assert body["is_lifetime"] is True

    def test_reserve_key_for_unknown_user(self, admin_client):
        response = admin_client.post(
            reverse("admin_api:reserve-key"),
            {"user_id": str(uuid.uuid4()), "duration": "1d"},
            format="json",
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "USER_NOT_FOUND"

    def test_list_keys_by_state(self, admin_client, make_user, make_key):
        make_key()
        active = make_key(owner=make_user())

        response = admin_client.get(reverse("admin_api:list-keys"), {"state": "active"})

        assert response.status_code == 200
        assert [item["key"] for item in response.json()] == [active.key]

    def test_reset_hardware_id(self, admin_client, make_user, make_key):
        row = make_key(owner=make_user(), hardware_id="HW-1")

        response = admin_client.post(
            reverse("admin_api:reset-hwid"), {"key": row.key.lower()}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["hardware_id"] is None
        row.refresh_from_db()
        assert row.hardware_id is None
        assert row.owner_id is not None

    def test_delete_key(self, admin_client, make_key):
        row = make_key()

        response = admin_client.post(reverse("admin_api:delete-key"), {"key": row.key}, format="json")
        missing = admin_client.post(reverse("admin_api:delete-key"), {"key": row.key}, format="json")

        assert response.status_code == 204
        assert missing.status_code == 404
        assert missing.json() == {
            "error": {"code": "KEY_NOT_FOUND", "message": "License key not found"}
        }


@pytest.mark.django_db
@pytest.mark.integration
class TestUserAdministration:
    """Integration tests for user management and statistics."""

    def test_ban_and_unban(self, admin_client, make_user, make_key):
        user = make_user()
        owned = make_key(owner=user)
        unknown = uuid.uuid4()

        response = admin_client.post(
            reverse("admin_api:ban-users"),
            {"user_ids": [str(user.id), str(unknown)]},
            format="json",
        )

        assert response.status_code == 200
        body = response.json()
        assert body["updated"] == 1
        assert {row["user_id"]: row["status"] for row in body["results"]} == {
            str(user.id): "updated",
            str(unknown): "not_found",
        }
        user.refresh_from_db()
        assert user.banned is True
        owned.refresh_from_db()
        assert owned.owner_id == user.id

        admin_client.post(reverse("admin_api:unban-users"), {"user_ids": [str(user.id)]}, format="json")
        user.refresh_from_db()
        assert user.banned is False

    def test_list_users_hides_credentials(self, admin_client, make_user):
        make_user(email="active@example.com")
        make_user(email="banned@example.com", banned=True)

        response = admin_client.get(reverse("admin_api:list-users"), {"banned": "true"})

        assert response.status_code == 200
        body = response.json()
        assert [item["email"] for item in body] == ["banned@example.com"]
        assert "password" not in body[0]

    def test_statistics(self, admin_client, make_user, make_key):
        user = make_user()
        make_key()
        make_key(KeyDuration.ONE_MONTH, owner=user)
        make_key(
            KeyDuration.ONE_DAY,
            owner=make_user(banned=True),
            claimed_at=timezone.now() - timedelta(days=3),
        )

        response = admin_client.get(reverse("admin_api:stats"))

        assert response.status_code == 200
        body = response.json()
        assert body["total_users"] == 2
        assert body["banned_users"] == 1
        assert body["total_keys"] == 3
        assert body["available_keys"] == 1
        assert body["active_keys"] == 1
        assert body["expired_keys"] == 1
        assert len(body["claims_per_day"]) == 7
        assert sum(day["count"] for day in body["claims_per_day"]) == 2
        assert body["estimated_revenue"] == KeyDuration.ONE_MONTH.price + KeyDuration.ONE_DAY.price
