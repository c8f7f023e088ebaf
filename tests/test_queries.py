"""
Query layer against a throwaway sqlite file.
"""

import pytest

from queries import NoRowsError, QueryError
from utils import now_utc

pytestmark = pytest.mark.anyio


async def test_create_then_get_paste(queries):
    created = await queries.create_paste("abcd1234", now_utc(), "my paste")
    assert created.id == "abcd1234"
    assert created.title == "my paste"

    fetched = await queries.get_paste("abcd1234")
    assert fetched.id == created.id
    assert fetched.title == "my paste"


async def test_get_missing_paste_raises(queries):
    with pytest.raises(NoRowsError):
        await queries.get_paste("nope0000")


async def test_duplicate_paste_id_is_a_query_error(queries):
    await queries.create_paste("dupe0000", now_utc(), "first")
    with pytest.raises(QueryError):
        await queries.create_paste("dupe0000", now_utc(), "second")


async def test_exists_paste(queries):
    assert await queries.exists_paste("exist000") is False
    await queries.create_paste("exist000", now_utc(), "")
    assert await queries.exists_paste("exist000") is True


async def test_paste_count(queries):
    assert await queries.get_paste_count() == 0
    for i in range(3):
        await queries.create_paste(f"count00{i}", now_utc(), f"paste {i}")
    assert await queries.get_paste_count() == 3


async def test_paste_pasties(queries):
    await queries.create_paste("parent00", now_utc(), "parent")
    await queries.create_paste("other000", now_utc(), "other")
    for i in range(4):
        pasty = await queries.create_pasty(f"pasty00{i}", "parent00", f"file {i}", f"content {i}")
        assert pasty.paste_id == "parent00"
    await queries.create_pasty("stray000", "other000", "", "elsewhere")

    pasties = await queries.get_paste_pasties("parent00")
    assert len(pasties) == 4
    assert all(p.paste_id == "parent00" for p in pasties)
    assert {p.id for p in pasties} == {f"pasty00{i}" for i in range(4)}


async def test_paste_without_pasties_returns_empty_list(queries):
    await queries.create_paste("lonely00", now_utc(), "")
    assert await queries.get_paste_pasties("lonely00") == []


async def test_exists_pasty(queries):
    await queries.create_paste("parent00", now_utc(), "")
    assert await queries.exists_pasty("pasty000") is False
    await queries.create_pasty("pasty000", "parent00", "", "x")
    assert await queries.exists_pasty("pasty000") is True


async def test_user_by_provider(queries):
    assert await queries.exists_user_by_provider("GitHub", "42") is False

    await queries.create_user("user0000", now_utc(), "someone", "", "GitHub", "42")

    assert await queries.exists_user_by_provider("GitHub", "42") is True
    # same provider id under another provider is a different identity
    assert await queries.exists_user_by_provider("GitLab", "42") is False

    user = await queries.get_user_by_provider("GitHub", "42")
    assert user.id == "user0000"
    assert user.username == "someone"


async def test_get_user_by_provider_missing(queries):
    with pytest.raises(NoRowsError):
        await queries.get_user_by_provider("GitHub", "404")


async def test_provider_identity_is_unique(queries):
    await queries.create_user("user0001", now_utc(), "first", "", "GitHub", "7")
    with pytest.raises(QueryError):
        await queries.create_user("user0002", now_utc(), "second", "", "GitHub", "7")


async def test_set_user_avatar(queries):
    await queries.create_user("user0003", now_utc(), "avatarist", "", "GitHub", "9")
    await queries.set_user_avatar("user0003", "http://pastemyst.test/assets/avatars/x.png")
    user = await queries.get_user_by_id("user0003")
    assert user.avatar_url == "http://pastemyst.test/assets/avatars/x.png"


async def test_create_paste_with_owner_and_language(queries):
    await queries.create_user("owner000", now_utc(), "owner", "", "GitHub", "11")
    paste = await queries.create_paste("owned000", now_utc(), "mine", owner_id="owner000", private=True)
    assert paste.owner_id == "owner000"
    assert paste.private is True

    pasty = await queries.create_pasty("pasty111", "owned000", "main.d", "void main() {}", "D")
    assert pasty.language == "D"
    assert (await queries.get_paste_pasties("owned000"))[0].language == "D"


async def test_exists_user_and_username(queries):
    assert await queries.exists_user("user0009") is False
    assert await queries.exists_user_by_username("taken") is False
    await queries.create_user("user0009", now_utc(), "taken", "", "GitHub", "12")
    assert await queries.exists_user("user0009") is True
    assert await queries.exists_user_by_username("taken") is True
