from __future__ import annotations

from pathlib import Path

import pytest

from slg_viewer.core.errors import NotFound, StorageError, StorageUnsupported
from slg_viewer.core.models import LogRecord, Severity
from slg_viewer.core.parser import parse_records
from slg_viewer.core.store import FileLogStore, unique_name

TEXT = (
    "2024-01-01 10:00:05,500 ERROR fail\n"
    "2024-01-01 10:00:00,000 INFO start\n"
    "10:00:01,000 WARN time only\n"
)


def test_unique_name_suffixes() -> None:
    assert unique_name("a.slg", set()) == "a.slg"
    assert unique_name("a.slg", {"a.slg"}) == "a.slg_1"
    assert unique_name("a.slg", {"a.slg", "a.slg_1", "a.slg_2"}) == "a.slg_3"
    assert unique_name("App.slg", {"app.slg"}) == "App.slg_1"
    assert unique_name("APP.SLG", {"app.slg", "App.slg_1"}) == "APP.SLG_2"


@pytest.mark.asyncio
async def test_save_then_load_round_trip(store: FileLogStore) -> None:
    records = parse_records(TEXT)

    name = await store.save("app.slg", records)
    loaded = await store.load_all(name)

    assert name == "app.slg"
    assert set(loaded) == set(records)
    assert [r.key for r in loaded] == [1, 2, 3]


@pytest.mark.asyncio
async def test_save_same_name_twice_gives_distinct_names(store: FileLogStore) -> None:
    first = await store.save("app.slg", parse_records(TEXT))
    second = await store.save("app.slg", parse_records("10:00:00,000 INFO other\n"))
    third = await store.save("app.slg", [])

    assert (first, second, third) == ("app.slg", "app.slg_1", "app.slg_2")
    assert await store.list_names() == {"app.slg", "app.slg_1", "app.slg_2"}
    assert [r.message for r in await store.load_all(second)] == ["other"]
    assert await store.load_all(third) == []


@pytest.mark.asyncio
async def test_data_survives_new_store_instance(tmp_path: Path) -> None:
    root = tmp_path / "data"
    await FileLogStore(root).save("app.slg", parse_records(TEXT))

    reopened = FileLogStore(root)

    assert await reopened.list_names() == {"app.slg"}
    assert len(await reopened.load_all("app.slg")) == 3


@pytest.mark.asyncio
async def test_names_with_path_characters(store: FileLogStore) -> None:
    name = await store.save("dir/odd name%.slg", parse_records(TEXT))

    assert name == "dir/odd name%.slg"
    assert await store.list_names() == {name}
    assert len(await store.load_all(name)) == 3


@pytest.mark.asyncio
async def test_list_names_missing_root_is_empty(store: FileLogStore) -> None:
    assert await store.list_names() == set()


@pytest.mark.asyncio
async def test_list_names_ignores_foreign_files(store: FileLogStore) -> None:
    await store.save("app.slg", [])
    (store.root / "README.txt").write_text("hello", encoding="utf-8")

    assert await store.list_names() == {"app.slg"}


@pytest.mark.asyncio
async def test_list_names_unsupported_when_root_is_not_a_directory(tmp_path: Path) -> None:
    root = tmp_path / "not-a-dir"
    root.write_text("", encoding="utf-8")

    with pytest.raises(StorageUnsupported):
        await FileLogStore(root).list_names()


@pytest.mark.asyncio
async def test_load_unknown_name_raises_not_found(store: FileLogStore) -> None:
    with pytest.raises(NotFound) as excinfo:
        await store.load_all("missing.slg")
    assert excinfo.value.name == "missing.slg"
    assert isinstance(excinfo.value, LookupError)


@pytest.mark.asyncio
async def test_load_corrupt_document_raises_storage_error(store: FileLogStore) -> None:
    name = await store.save("app.slg", [LogRecord("10:00:00,000", Severity.INFO, "ok")])
    path = next(store.root.glob("log_*.jsonl"))
    path.write_text(path.read_text(encoding="utf-8") + "{not json}\n", encoding="utf-8")

    with pytest.raises(StorageError):
        await store.load_all(name)


@pytest.mark.asyncio
async def test_delete_is_idempotent(store: FileLogStore) -> None:
    name = await store.save("app.slg", parse_records(TEXT))

    await store.delete(name)
    await store.delete(name)
    await store.delete("never-saved.slg")

    assert await store.list_names() == set()
    with pytest.raises(NotFound):
        await store.load_all(name)


@pytest.mark.asyncio
async def test_save_rejects_empty_name(store: FileLogStore) -> None:
    with pytest.raises(ValueError):
        await store.save("", [])


@pytest.mark.asyncio
@pytest.mark.parametrize("sep", ["\u2028", "\u2029", "\x85", "\x0c", "\x1c"])
async def test_round_trip_keeps_unicode_line_separators_in_messages(
    store: FileLogStore, sep: str
) -> None:
    records = parse_records(f"2024-01-01 10:00:00,000 INFO left{sep}right\n")
    assert records[0].message == f"left{sep}right"

    name = await store.save("app.slg", records)
    loaded = await store.load_all(name)

    assert set(loaded) == set(records)


@pytest.mark.asyncio
async def test_names_differing_only_in_case_stay_separate(store: FileLogStore) -> None:
    first = await store.save("app.slg", parse_records("10:00:00,000 INFO lower\n"))
    second = await store.save("App.slg", parse_records("10:00:00,000 INFO upper\n"))

    assert (first, second) == ("app.slg", "App.slg_1")
    assert await store.list_names() == {"app.slg", "App.slg_1"}
    assert [r.message for r in await store.load_all(first)] == ["lower"]
    assert [r.message for r in await store.load_all(second)] == ["upper"]


@pytest.mark.asyncio
async def test_failed_save_leaves_no_temp_file(
    store: FileLogStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    def fail_fsync(fd: int) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("slg_viewer.core.store.os.fsync", fail_fsync)

    with pytest.raises(StorageError):
        await store.save("app.slg", parse_records(TEXT))

    assert list(store.root.iterdir()) == []
