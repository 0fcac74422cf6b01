"""Redis document store tests against an in-memory Redis."""

from __future__ import annotations

import json

import pytest

from storefront.store import api_keys, documents, products, users
from storefront.store.redis import StoreUnavailable


class TestDocuments:
    @pytest.mark.asyncio
    async def test_insert_and_get(self, fake_redis):
        doc = await documents.insert_document("things", {"colour": "red"})

        assert doc["colour"] == "red"
        assert "created_at" in doc
        assert await documents.get_document("things", doc["id"]) == doc
        assert doc["id"] in fake_redis.sets["things:ids"]
        assert json.loads(fake_redis.strings[f"things:{doc['id']}"]) == doc

    @pytest.mark.asyncio
    async def test_get_missing(self, fake_redis):
        assert await documents.get_document("things", "nope") is None

    @pytest.mark.asyncio
    async def test_explicit_id(self, fake_redis):
        doc = await documents.insert_document("things", {}, doc_id="fixed")
        assert doc["id"] == "fixed"

    @pytest.mark.asyncio
    async def test_list_filters(self, fake_redis):
        first = await documents.insert_document("things", {"colour": "red"})
        await documents.insert_document("things", {"colour": "blue"})
        third = await documents.insert_document("things", {"colour": "red"})

        red = await documents.list_documents("things", colour="red")

        assert {d["id"] for d in red} == {first["id"], third["id"]}
        assert len(await documents.list_documents("things")) == 3

    @pytest.mark.asyncio
    async def test_list_ordered_by_creation(self, fake_redis):
        fake_redis.sets["things:ids"] = {"b", "a"}
        fake_redis.strings["things:a"] = json.dumps({"id": "a", "created_at": "2024-01-02T00:00:00+00:00"})
        fake_redis.strings["things:b"] = json.dumps({"id": "b", "created_at": "2024-01-01T00:00:00+00:00"})

        assert [d["id"] for d in await documents.list_documents("things")] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_list_empty_collection(self, fake_redis):
        assert await documents.list_documents("things") == []

    @pytest.mark.asyncio
    async def test_update_merges_and_stamps(self, fake_redis):
        doc = await documents.insert_document("things", {"colour": "red", "size": 1})

        updated = await documents.update_document("things", doc["id"], {"size": 2, "id": "hijack"})

        assert updated["id"] == doc["id"]
        assert updated["colour"] == "red"
        assert updated["size"] == 2
        assert "updated_at" in updated

    @pytest.mark.asyncio
    async def test_update_missing(self, fake_redis):
        assert await documents.update_document("things", "nope", {"a": 1}) is None

    @pytest.mark.asyncio
    async def test_delete(self, fake_redis):
        doc = await documents.insert_document("things", {})

        assert await documents.delete_document("things", doc["id"]) is True
        assert await documents.delete_document("things", doc["id"]) is False
        assert await documents.list_documents("things") == []

    @pytest.mark.asyncio
    async def test_store_unavailable(self, monkeypatch):
        monkeypatch.setattr("storefront.store.redis._pool", None)
        with pytest.raises(StoreUnavailable):
            await documents.get_document("things", "x")


class TestUsers:
    @pytest.mark.asyncio
    async def test_create_and_lookup_by_email(self, fake_redis):
        user = await users.create_user(name="Ann", email=" Ann@Example.com", password_hash="h", role="user")

        assert user["email"] == "ann@example.com"
        assert (await users.get_user_by_email("ANN@example.com"))["id"] == user["id"]

    @pytest.mark.asyncio
    async def test_duplicate_email(self, fake_redis):
        await users.create_user(name="Ann", email="ann@example.com", password_hash="h", role="user")
        with pytest.raises(users.DuplicateEmail):
            await users.create_user(name="Other", email="ANN@example.com", password_hash="h", role="user")

    @pytest.mark.asyncio
    async def test_unknown_email(self, fake_redis):
        assert await users.get_user_by_email("ghost@example.com") is None

    def test_public_user_strips_hash(self):
        assert users.public_user({"id": "1", "password_hash": "h"}) == {"id": "1"}


class TestOwnership:
    @pytest.mark.asyncio
    async def test_product_owned_by_creator(self, fake_redis):
        product = await products.create_product("owner-1", {"name": "Lime", "owner_id": "spoof"})

        assert product["owner_id"] == "owner-1"
        assert await products.get_owned_product(product["id"], "owner-2") is None
        assert await products.update_product(product["id"], "owner-2", {"name": "x"}) is None
        assert await products.delete_product(product["id"], "owner-2") is False
        assert await products.get_product(product["id"]) is not None

    @pytest.mark.asyncio
    async def test_api_key_deleted_only_by_owner(self, fake_redis):
        key = await api_keys.create_api_key("owner-1", name="ci")

        assert await api_keys.delete_api_key(key["id"], "owner-2") is False
        assert await api_keys.delete_api_key(key["id"], "owner-1") is True
        assert await api_keys.list_api_keys("owner-1") == []

    def test_generated_keys_unique(self):
        assert api_keys.generate_api_key() != api_keys.generate_api_key()
