"""Tests for folder limits and the health endpoint."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from app.api.routes.folders import ensure_folder_capacity
from app.db.session import get_db
from app.errors import FolderLimitReached
from app.main import app


def _session_with_count(count: int) -> AsyncMock:
    result = MagicMock()
    result.scalar.return_value = count
    db = AsyncMock()
    db.execute.return_value = result
    db.add = MagicMock()

    async def refresh(obj):
        obj.id = uuid4()
        obj.created_at = obj.updated_at = datetime.now(timezone.utc)

    db.refresh.side_effect = refresh
    return db


def _executed_sql(db: AsyncMock) -> list[str]:
    return [
        str(call.args[0].compile(dialect=postgresql.dialect()))
        for call in db.execute.await_args_list
    ]


async def test_folder_under_limit_is_allowed():
    await ensure_folder_capacity(_session_with_count(2), uuid4(), limit=3)


async def test_folder_limit_is_enforced():
    with pytest.raises(FolderLimitReached) as exc_info:
        await ensure_folder_capacity(_session_with_count(3), uuid4(), limit=3)

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Maximum folder limit (3) reached"


async def test_user_row_is_locked_before_counting():
    db = _session_with_count(0)

    await ensure_folder_capacity(db, uuid4(), limit=3)

    lock_sql, count_sql = _executed_sql(db)
    assert "FOR UPDATE" in lock_sql and "users" in lock_sql
    assert "count" in count_sql.lower() and "FOR UPDATE" not in count_sql


async def test_create_folder_route_rejects_fourth_folder(client):
    db = _session_with_count(3)
    app.dependency_overrides[get_db] = lambda: db

    response = await client.post("/folders/", json={"name": "Chemistry"})

    assert response.status_code == 403
    assert response.json() == {"error": "Maximum folder limit (3) reached"}
    assert "FOR UPDATE" in _executed_sql(db)[0]
    db.add.assert_not_called()
    db.commit.assert_not_awaited()


async def test_create_folder_route_under_limit(client, user):
    db = _session_with_count(2)
    app.dependency_overrides[get_db] = lambda: db

    response = await client.post("/folders/", json={"name": "Chemistry"})

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Chemistry"
    assert data["user_id"] == str(user.id)
    assert "FOR UPDATE" in _executed_sql(db)[0]
    db.commit.assert_awaited_once()


async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"status": "healthy"}
