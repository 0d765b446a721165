from datetime import datetime, timedelta

import pytest
from sqlalchemy.dialects import mysql

from hottake.errors import NotFound, NotOwner, ValidationError
from hottake.like_ledger import LikeLedger
from hottake.models import Take
from hottake.take_store import TakeStore, TimeWindow, validate_contents

NOW = datetime(2026, 10, 15, 12, 0)


@pytest.mark.parametrize("contents", ["x", "a" * 169, "  hot take  ", " " * 5 + "b" * 169 + " " * 5])
def test_valid_lengths_pass(contents):
    assert validate_contents(contents) == contents.strip()


@pytest.mark.parametrize("contents", ["", "   ", "\n\t", "a" * 170])
def test_invalid_lengths_fail(contents):
    with pytest.raises(ValidationError) as excinfo:
        validate_contents(contents)
    assert excinfo.value.field == "contents"


async def test_create_stores_trimmed_contents_with_clock_timestamp(session, users):
    store = TakeStore(session, clock=lambda: NOW)
    take = await store.create(users[0], "  pineapple belongs on pizza  ")
    await session.commit()

    fetched = await store.get(take.id)
    assert fetched.contents == "pineapple belongs on pizza"
    assert fetched.owner_id == users[0]
    assert fetched.created_at == NOW


async def test_invalid_create_leaves_no_record(session, users):
    store = TakeStore(session)
    with pytest.raises(ValidationError):
        await store.create(users[0], "a" * 170)
    assert await store.list() == []


async def test_get_missing_take(session):
    with pytest.raises(NotFound):
        await TakeStore(session).get(999)


async def test_ids_increase_in_insertion_order(session, users):
    store = TakeStore(session, clock=lambda: NOW)
    first = await store.create(users[0], "first")
    second = await store.create(users[1], "second")
    assert second.id > first.id


async def test_list_with_window_is_inclusive(session, users, make_take):
    inside_start = await make_take(users[0], "at start", NOW - timedelta(hours=27))
    inside_end = await make_take(users[0], "at end", NOW + timedelta(hours=3))
    await make_take(users[0], "too old", NOW - timedelta(hours=28))
    await make_take(users[0], "too new", NOW + timedelta(hours=4))

    window = TimeWindow(NOW - timedelta(hours=27), NOW + timedelta(hours=3))
    takes = await TakeStore(session).list(window)
    assert {t.id for t in takes} == {inside_start, inside_end}
    assert len(await TakeStore(session).list()) == 4


def test_window_rejects_reversed_bounds():
    with pytest.raises(ValidationError):
        TimeWindow(NOW, NOW - timedelta(seconds=1))


async def test_only_owner_can_delete(session, users, make_take):
    take_id = await make_take(users[0], "mine", NOW)
    store = TakeStore(session)
    with pytest.raises(NotOwner):
        await store.delete(take_id, users[1])
    assert (await store.get(take_id)).id == take_id


async def test_delete_missing_take(session, users):
    with pytest.raises(NotFound):
        await TakeStore(session).delete(12345, users[0])


async def test_delete_cascades_to_likes(session, users, make_take):
    take_id = await make_take(users[0], "doomed", NOW)
    other_id = await make_take(users[0], "survivor", NOW)
    ledger = LikeLedger(session)
    for user_id in users:
        await ledger.add(user_id, take_id)
    await ledger.add(users[1], other_id)
    await session.commit()

    await TakeStore(session).delete(take_id, users[0])
    await session.commit()

    with pytest.raises(NotFound):
        await TakeStore(session).get(take_id)
    # A deleted take reads as having no likes
    assert await ledger.count_for(take_id) == 0
    assert await ledger.likers_of(take_id) == set()
    assert await ledger.count_for(other_id) == 1


def test_timestamps_keep_microseconds_on_mysql():
    column_type = Take.__table__.c.created_at.type
    assert column_type.compile(dialect=mysql.dialect()) == "DATETIME(6)"
