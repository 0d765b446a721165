from datetime import datetime, timedelta

from hottake.feed_query import FeedQuery, today_window
from hottake.like_ledger import LikeLedger

NOW = datetime(2026, 10, 15, 12, 0)


async def test_unwindowed_query_is_newest_first(session, users, make_take):
    t1 = await make_take(users[0], "one", NOW - timedelta(hours=3))
    t3 = await make_take(users[1], "three", NOW - timedelta(hours=1))
    t2 = await make_take(users[2], "two", NOW - timedelta(hours=2))

    views = await FeedQuery(session).query()
    assert [v.id for v in views] == [t3, t2, t1]


async def test_equal_timestamps_order_by_id_descending(session, users, make_take):
    first = await make_take(users[0], "same time a", NOW)
    second = await make_take(users[1], "same time b", NOW)
    older = await make_take(users[2], "older", NOW - timedelta(minutes=1))

    views = await FeedQuery(session).query()
    assert [v.id for v in views] == [second, first, older]


async def test_today_window_bounds(session, users, make_take):
    await make_take(users[0], "yesterday-ish", NOW - timedelta(hours=28))
    recent = await make_take(users[0], "an hour ago", NOW - timedelta(hours=1))
    skewed = await make_take(users[0], "client clock ahead", NOW + timedelta(hours=2))

    views = await FeedQuery(session).query(today_window(NOW))
    assert [v.id for v in views] == [skewed, recent]


def test_today_window_is_27h_back_3h_ahead():
    window = today_window(NOW)
    assert window.start == NOW - timedelta(hours=27)
    assert window.end == NOW + timedelta(hours=3)


async def test_views_carry_like_state(session, users, make_take):
    take_id = await make_take(users[0], "hot dogs are sandwiches", NOW)
    ledger = LikeLedger(session)
    await ledger.add(users[2], take_id)
    await ledger.add(users[1], take_id)
    await session.commit()

    [view] = await FeedQuery(session).query()
    assert view.number_of_likes == 2
    assert view.likers == sorted([users[1], users[2]])
    assert view.owner_id == users[0]
    assert view.contents == "hot dogs are sandwiches"
    assert view.created_at == NOW


async def test_empty_feed(session):
    assert await FeedQuery(session).query() == []
