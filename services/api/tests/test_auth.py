from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlalchemy import func, select, update

from hottake.auth import IdentityGuard, TokenDenylist, decode_token, issue_token
from hottake.errors import Unauthenticated
from hottake.models import RevokedToken


async def test_valid_token_resolves_user(session, users):
    token = issue_token(users[0])
    assert await IdentityGuard(session).authenticate(token) == users[0]


@pytest.mark.parametrize("credential", [None, "", "not-a-jwt", "a.b.c"])
async def test_missing_or_malformed_credentials(session, credential):
    with pytest.raises(Unauthenticated):
        await IdentityGuard(session).authenticate(credential)


async def test_expired_token(session, users):
    long_ago = datetime.now(timezone.utc) - timedelta(days=61)
    with pytest.raises(Unauthenticated, match="expired"):
        await IdentityGuard(session).authenticate(issue_token(users[0], now=long_ago))


async def test_token_signed_with_another_secret(session, users):
    forged = jwt.encode({"sub": users[0], "jti": "x"}, "wrong-secret", algorithm="HS256")
    with pytest.raises(Unauthenticated):
        await IdentityGuard(session).authenticate(forged)


def test_token_without_jti_is_rejected():
    token = jwt.encode({"sub": "someone"}, "test-secret", algorithm="HS256")
    with pytest.raises(Unauthenticated):
        decode_token(token)


async def test_token_for_unknown_user(session, db):
    with pytest.raises(Unauthenticated):
        await IdentityGuard(session).authenticate(issue_token("no-such-user"))


async def test_revoked_token_is_rejected(session, users):
    guard = IdentityGuard(session)
    token = issue_token(users[0])
    other = issue_token(users[0])

    await guard.revoke(token)
    await session.commit()

    with pytest.raises(Unauthenticated, match="revoked"):
        await guard.authenticate(token)
    # Revocation is per token, not per user
    assert await guard.authenticate(other) == users[0]


async def test_revoking_twice_is_harmless(session, users):
    denylist = TokenDenylist(session)
    await denylist.revoke("abc")
    await denylist.revoke("abc")
    assert await denylist.is_revoked("abc") is True
    assert await denylist.is_revoked("def") is False


async def test_prune_forgets_expired_revocations(session, db):
    denylist = TokenDenylist(session)
    now = datetime(2026, 10, 15, 12, 0)
    await denylist.revoke("stale", expires_at=now - timedelta(days=1))
    await denylist.revoke("fresh", expires_at=now + timedelta(days=1))

    assert await denylist.prune(now) == 1
    assert await denylist.is_revoked("stale") is False
    assert await denylist.is_revoked("fresh") is True


async def test_logout_prunes_expired_revocations(session, users):
    guard = IdentityGuard(session)
    for user_id in users[:2]:
        await guard.revoke(issue_token(user_id))
    await session.commit()
    await session.execute(update(RevokedToken).values(expires_at=datetime(2000, 1, 1)))
    await session.commit()

    live = issue_token(users[2])
    await guard.revoke(live)
    await session.commit()

    rows = await session.execute(select(func.count()).select_from(RevokedToken))
    assert rows.scalar_one() == 1
    with pytest.raises(Unauthenticated, match="revoked"):
        await guard.authenticate(live)
