"""
test_identity.py — password hashing and the session identity boundary.
"""
import pytest

from planmystay.auth import LocalPasswordStrategy, deserialize_user, serialize_user
from planmystay.auth.identity import Identity
from planmystay.auth.passwords import hash_password, verify_password
from planmystay.schemas import LoginForm
from planmystay import store


def test_hash_and_verify():
    hashed = hash_password("s3cret-pass", rounds=4)
    assert hashed.startswith("$2")
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("other", hashed)


def test_verify_rejects_malformed_hash():
    assert verify_password("s3cret-pass", "not-a-bcrypt-hash") is False


@pytest.mark.asyncio
async def test_serialize_stores_only_the_id(app):
    async with app.state.sessionmaker() as db:
        user = await store.create_user(db, "alice", "alice@planmystay.io", hash_password("pw1234", rounds=4))
        await db.commit()

        identity = Identity.from_orm(user)
        assert serialize_user(identity) == user.id
        assert await deserialize_user(db, user.id) == identity
        assert await deserialize_user(db, "missing-id") is None
        assert await deserialize_user(db, None) is None


@pytest.mark.asyncio
async def test_local_strategy(app):
    strategy = LocalPasswordStrategy()
    async with app.state.sessionmaker() as db:
        await store.create_user(db, "alice", "alice@planmystay.io", hash_password("pw1234", rounds=4))
        await db.commit()

        ok = await strategy.authenticate(db, LoginForm(username="alice", password="pw1234"))
        assert ok is not None and ok.username == "alice"
        assert await strategy.authenticate(db, LoginForm(username="alice", password="nope")) is None
        assert await strategy.authenticate(db, LoginForm(username="bob", password="pw1234")) is None
