import pytest

from src.core.errors import DuplicateIdentity
from src.models.subscription import Subscription


def _create(store, username="alice", email="alice@x.com", password="s3cret!"):
    return store.create(
        username=username,
        email=email,
        full_name="  Alice Doe ",
        password=password,
        avatar="https://a/alice.png",
    )


def test_create_hashes_password(store):
    user = _create(store)

    assert user.password != "s3cret!"
    assert user.password.startswith("$2")
    assert store.verify_password(user, "s3cret!")
    assert not store.verify_password(user, "wrong")
    assert not store.verify_password(user, None)
    assert user.full_name == "Alice Doe"


def test_password_rehashed_on_update(store):
    user = _create(store)
    old_hash = user.password

    store.update_by_id(user.id, password="changed")

    assert user.password != old_hash
    assert store.verify_password(user, "changed")
    assert not store.verify_password(user, "s3cret!")


def test_find_by_identity_ignores_case(store):
    user = _create(store)

    assert store.find_by_identity(username="ALICE").id == user.id
    assert store.find_by_identity(email=" Alice@X.com ").id == user.id
    assert store.find_by_identity(username="nobody", email="alice@x.com").id == user.id
    assert store.find_by_identity() is None


def test_create_rejects_duplicates(store):
    _create(store)

    with pytest.raises(DuplicateIdentity):
        _create(store, username="other", email="ALICE@x.com")
    with pytest.raises(DuplicateIdentity):
        _create(store, username="Alice", email="other@x.com")


def test_refresh_token_overwrite_and_clear(store):
    user = _create(store)

    store.set_refresh_token(user, "one")
    store.set_refresh_token(user, "two")
    assert store.find_by_id(user.id).refresh_token == "two"

    store.set_refresh_token(user, None)
    assert store.find_by_id(user.id).refresh_token is None


def test_channel_profile_counts(store, db_session):
    channel = _create(store)
    fan = _create(store, username="fan", email="fan@x.com")
    db_session.add(Subscription(subscriber_id=fan.id, channel_id=channel.id))
    db_session.commit()

    profile = store.channel_profile("Alice", viewer_id=fan.id)
    assert profile.subscribers_count == 1
    assert profile.subscribed_to_count == 0
    assert profile.is_subscribed is True

    anonymous = store.channel_profile("alice", viewer_id=None)
    assert anonymous.is_subscribed is False

    assert store.channel_profile("missing", viewer_id=fan.id) is None
