"""API key management endpoint tests."""

from __future__ import annotations

import re

from tests.helpers.accounts import register_and_login


class TestApiKeys:
    def test_generate_and_list(self, client, user_headers):
        resp = client.post("/api/v1/generateNewApiKey", json={"name": "ci"}, headers=user_headers)

        assert resp.status_code == 201
        key = resp.json()["apiKey"]
        assert re.match(r"^[0-9a-f]{48}$", key["id"])
        assert key["name"] == "ci"

        listed = client.get("/api/v1/getApiKeys", headers=user_headers).json()["apiKeys"]
        assert [k["id"] for k in listed] == [key["id"]]

    def test_generate_without_body(self, client, user_headers):
        resp = client.post("/api/v1/generateNewApiKey", headers=user_headers)
        assert resp.status_code == 201
        assert resp.json()["apiKey"]["name"] == ""

    def test_keys_are_per_user(self, client, user_headers, csrf_headers):
        client.post("/api/v1/generateNewApiKey", headers=user_headers)
        other = register_and_login(client, csrf_headers, "other@example.com")
        other_headers = {**csrf_headers, "Authorization": f"Bearer {other['token']}"}

        assert client.get("/api/v1/getApiKeys", headers=other_headers).json()["apiKeys"] == []

    def test_delete_key(self, client, user_headers):
        key_id = client.post("/api/v1/generateNewApiKey", headers=user_headers).json()["apiKey"]["id"]

        resp = client.delete(f"/api/v1/deleteApiKey/{key_id}", headers=user_headers)

        assert resp.status_code == 200
        assert client.get("/api/v1/getApiKeys", headers=user_headers).json()["apiKeys"] == []

    def test_cannot_delete_someone_elses_key(self, client, user_headers, csrf_headers):
        key_id = client.post("/api/v1/generateNewApiKey", headers=user_headers).json()["apiKey"]["id"]
        other = register_and_login(client, csrf_headers, "other@example.com")
        other_headers = {**csrf_headers, "Authorization": f"Bearer {other['token']}"}

        resp = client.delete(f"/api/v1/deleteApiKey/{key_id}", headers=other_headers)

        assert resp.status_code == 404

    def test_generate_requires_csrf(self, client, user_headers):
        headers = {"Authorization": user_headers["Authorization"]}
        resp = client.post("/api/v1/generateNewApiKey", headers=headers)
        assert resp.status_code == 403

    def test_listing_needs_no_csrf(self, client, user_headers):
        headers = {"Authorization": user_headers["Authorization"]}
        assert client.get("/api/v1/getApiKeys", headers=headers).status_code == 200

    def test_listing_requires_auth(self, client):
        client.cookies.clear()
        assert client.get("/api/v1/getApiKeys").status_code == 401
