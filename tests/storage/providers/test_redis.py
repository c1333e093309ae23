# tests/storage/providers/test_redis.py
"""
Tests for the Redis-backed record service adapter.
"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

# Skip if the real redis package is not available
pytest.importorskip("redis")

from redis.exceptions import ConnectionError as RedisConnectionError

from flowdesk.exceptions import StorageError
from flowdesk.models import Collection
from flowdesk.storage.providers.redis import RedisAdapter


class TestRedisAdapter:
    """Tests for the RedisAdapter class."""

    # --------------------------------------------------------------------- #
    # Fixtures
    # --------------------------------------------------------------------- #
    @pytest.fixture
    def mock_redis(self):
        """
        A MagicMock whose hash verbs are AsyncMocks backed by a dict, so
        call assertions keep working.
        """
        client = MagicMock()
        self.hashes = {}

        async def _hgetall(key):
            return dict(self.hashes.get(key, {}))

        async def _hget(key, field):
            return self.hashes.get(key, {}).get(field)

        async def _hset(key, field, value):
            bucket = self.hashes.setdefault(key, {})
            added = field not in bucket
            bucket[field] = value
            return int(added)

        async def _hsetnx(key, field, value):
            bucket = self.hashes.setdefault(key, {})
            if field in bucket:
                return 0
            bucket[field] = value
            return 1

        async def _hdel(key, *fields):
            bucket = self.hashes.get(key, {})
            return sum(1 for f in fields if bucket.pop(f, None) is not None)

        client.hgetall = AsyncMock(side_effect=_hgetall)
        client.hget = AsyncMock(side_effect=_hget)
        client.hset = AsyncMock(side_effect=_hset)
        client.hsetnx = AsyncMock(side_effect=_hsetnx)
        client.hdel = AsyncMock(side_effect=_hdel)
        client.aclose = AsyncMock()
        return client

    @pytest.fixture
    def adapter(self, mock_redis):
        return RedisAdapter(redis_client=mock_redis, key_prefix="test:")

    # --------------------------------------------------------------------- #
    # Tests
    # --------------------------------------------------------------------- #
    @pytest.mark.asyncio
    async def test_create_and_fetch(self, adapter, mock_redis):
        batch = await adapter.create(Collection.TASKS, [{"title": "Ship"}])
        assert batch.success
        mock_redis.hsetnx.assert_called_once()
        assert mock_redis.hsetnx.call_args.args[0] == "test:tasks"

        records = await adapter.fetch_all(Collection.TASKS)
        assert [r["title"] for r in records] == ["Ship"]

    @pytest.mark.asyncio
    async def test_fetch_orders_by_creation(self, adapter):
        self.hashes["test:notes"] = {
            "b": json.dumps({"id": "b", "title": "late", "createdAt": "2024-02-01T00:00:00+00:00"}),
            "a": json.dumps({"id": "a", "title": "early", "createdAt": "2024-01-01T00:00:00+00:00"}),
        }
        records = await adapter.fetch_all(Collection.NOTES)
        assert [r["id"] for r in records] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_fetch_skips_values_that_are_not_objects(self, adapter):
        self.hashes["test:notes"] = {
            "a": json.dumps({"id": "a", "title": "kept", "createdAt": "2024-01-01T00:00:00+00:00"}),
            "b": json.dumps(["not", "a", "record"]),
            "c": json.dumps(7),
            "d": "{broken",
        }
        records = await adapter.fetch_all(Collection.NOTES)
        assert [r["id"] for r in records] == ["a"]

    @pytest.mark.asyncio
    async def test_missing_fields_never_reach_redis(self, adapter, mock_redis):
        batch = await adapter.create(Collection.USERS, [{"name": "Ada"}])
        assert not batch.success
        assert batch.failed[0].errors == ["Missing required field: email"]
        mock_redis.hsetnx.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_existing_and_missing(self, adapter):
        created = (await adapter.create(Collection.PROJECTS, [{"name": "Launch"}])).results[0]
        batch = await adapter.update(Collection.PROJECTS, [
            {"id": created.id, "name": "Relaunch"},
            {"id": "ghost", "name": "Nope"},
        ])
        assert [r.success for r in batch.results] == [True, False]
        assert batch.failed[0].message == "Record does not exist"
        stored = json.loads(self.hashes["test:projects"][created.id])
        assert stored["name"] == "Relaunch"
        assert stored["createdAt"] == created.data["createdAt"]

    @pytest.mark.asyncio
    async def test_delete_reports_per_record(self, adapter, mock_redis):
        created = (await adapter.create(Collection.TASKS, [{"title": "t"}])).results[0]
        batch = await adapter.delete(Collection.TASKS, [created.id, "ghost"])
        assert not batch.success
        assert [r.success for r in batch.results] == [True, False]
        assert mock_redis.hdel.call_count == 2

    @pytest.mark.asyncio
    async def test_connection_error_on_write_is_per_record(self, adapter, mock_redis):
        mock_redis.hsetnx.side_effect = RedisConnectionError("down")
        batch = await adapter.create(Collection.TASKS, [{"title": "a"}, {"title": "b"}])
        assert len(batch.failed) == 2
        assert batch.failed[0].message == "down"

    @pytest.mark.asyncio
    async def test_connection_error_on_fetch_raises(self, adapter, mock_redis):
        mock_redis.hgetall.side_effect = RedisConnectionError("down")
        with pytest.raises(StorageError):
            await adapter.fetch_all(Collection.TASKS)

    @pytest.mark.asyncio
    async def test_close(self, adapter, mock_redis):
        await adapter.close()
        mock_redis.aclose.assert_awaited_once()
