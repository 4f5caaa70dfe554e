from __future__ import annotations

from pathlib import Path

import pytest

from prompt_bot.core.storage_engine import MirrorStorageEngine


@pytest.mark.asyncio
async def test_upsert_replaces_existing_document(tmp_path: Path, error_engine) -> None:
    engine = MirrorStorageEngine(str(tmp_path / "mirror.sqlite3"), error_engine)
    await engine.initialize()
    try:
        await engine.upsert(1, "users", "profile", {"target_language": "ja"})
        await engine.upsert(1, "users", "profile", {"target_language": "en"})

        assert await engine.load_namespace("users") == [(1, "profile", {"target_language": "en"})]
        assert await engine.load_namespace("points") == []
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_load_namespace_keeps_insertion_order(tmp_path: Path, error_engine) -> None:
    engine = MirrorStorageEngine(str(tmp_path / "mirror.sqlite3"), error_engine)
    await engine.initialize()
    try:
        await engine.upsert(3, "points", "total", {"points": 1})
        await engine.upsert(1, "points", "total", {"points": 5})
        await engine.upsert(2, "pseudonyms", "handle", {"handle": "AB-1 🐼🌱"})
        await engine.upsert(3, "points", "total", {"points": 2})

        rows = await engine.load_namespace("points")
    finally:
        await engine.close()

    assert rows == [(3, "total", {"points": 2}), (1, "total", {"points": 5})]


@pytest.mark.asyncio
async def test_relative_paths_resolve_under_project_root(error_engine) -> None:
    engine = MirrorStorageEngine("data/example.sqlite3", error_engine)
    assert engine.db_path.is_absolute()
    assert engine.db_path.parts[-2:] == ("data", "example.sqlite3")
    assert not engine.is_open
