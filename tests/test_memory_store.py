import pytest

from vrai.exceptions import AuthenticationError, ConflictError, RemoteServiceError
from vrai.memory_store import MemoryDataService


@pytest.fixture
def memory():
    return MemoryDataService(jwt_secret="s3cret", public_base_url="http://testserver/")


async def test_insert_assigns_id_and_timestamps(memory):
    row = await memory.insert("t", {"name": "a"})
    assert row["id"] and row["created_at"] and row["updated_at"]
    assert await memory.select("t", filters={"id": row["id"]}) == [row]


async def test_select_filters_orders_and_projects(memory):
    await memory.insert("t", {"n": 2, "tag": "x"})
    await memory.insert("t", {"n": 1, "tag": "y"})
    await memory.insert("t", {"n": None, "tag": "x"})

    assert [r["n"] for r in await memory.select("t", order="n.asc")] == [1, 2, None]
    assert [r["n"] for r in await memory.select("t", order="n.desc")] == [None, 2, 1]
    assert [r["n"] for r in await memory.select("t", order="n.desc.nullslast")] == [2, 1, None]
    assert len(await memory.select("t", filters={"tag": ["x", "z"]})) == 2
    assert await memory.select("t", filters={"tag": "y"}, columns="n") == [{"n": 1}]
    assert len(await memory.select("t", limit=1)) == 1


async def test_rows_are_copies(memory):
    row = await memory.insert("t", {"items": [1]})
    row["items"].append(2)
    assert (await memory.select("t"))[0]["items"] == [1]


async def test_upsert_updates_or_inserts(memory):
    await memory.upsert("stats", {"date": "2025-01-01", "total": 1}, on_conflict="date")
    await memory.upsert("stats", {"date": "2025-01-01", "total": 5}, on_conflict="date")
    rows = await memory.select("stats")
    assert len(rows) == 1 and rows[0]["total"] == 5


async def test_accounts_and_tokens(memory):
    user = await memory.sign_up("a@example.com", "password1", {"display_name": "A"})
    with pytest.raises(ConflictError):
        await memory.sign_up("a@example.com", "other")

    with pytest.raises(AuthenticationError):
        await memory.sign_in("a@example.com", "wrong")

    session = await memory.sign_in("a@example.com", "password1")
    identity = await memory.get_user(session["access_token"])
    assert identity["id"] == user["id"]
    assert identity["user_metadata"]["display_name"] == "A"

    with pytest.raises(AuthenticationError):
        await memory.get_user("not-a-token")


async def test_storage_respects_upsert_flag(memory):
    await memory.upload_object("b", "dir/file.jpg", b"1", "image/jpeg")
    with pytest.raises(RemoteServiceError):
        await memory.upload_object("b", "dir/file.jpg", b"2", "image/jpeg")
    await memory.upload_object("b", "dir/file.jpg", b"3", "image/jpeg", upsert=True)
    assert memory.read_object("b", "dir/file.jpg") == (b"3", "image/jpeg")
    assert memory.public_url("b", "dir/file.jpg") == "http://testserver/storage/v1/object/public/b/dir/file.jpg"


async def test_list_objects_marks_folders(memory):
    await memory.upload_object("b", "sub/a.jpg", b"", "image/jpeg")
    await memory.upload_object("b", "sub/inner/b.jpg", b"", "image/jpeg")
    await memory.upload_object("b", "other/c.jpg", b"", "image/jpeg")
    entries = await memory.list_objects("b", "sub")
    assert entries == [{"name": "a.jpg", "id": "sub/a.jpg"}, {"name": "inner", "id": None}]


async def test_functions(memory, store):
    with pytest.raises(RemoteServiceError):
        await memory.invoke_function("missing", {})

    request = await store.insert("authentication_requests", {"human_readable_id": "Vrai#000004"})
    result = await store.invoke_function(
        "generate-pdf-report",
        {"fullName": "Ann", "images": ["u1"], "updatedAt": "2025-01-01", "submissionId": "vrai#000004", "model": "Kelly"},
    )
    assert result["url"].endswith("/reports/vrai#000004.pdf")
    stored = (await store.select("authentication_requests", filters={"id": request["id"]}))[0]
    assert stored["report_url"] == result["url"]
