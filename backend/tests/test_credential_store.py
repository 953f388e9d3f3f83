"""
Credential store tests
"""

import pydantic
import pytest

from booking_auth.core.config import Settings
from booking_auth.core.errors import DuplicateEmail
from booking_auth.models.user import User
from booking_auth.services.credential_store import credential_store


def test_create_stores_hash_not_plaintext(db):
    user = credential_store.create(db, "Jane Doe", "jane@x.com", "secret1")
    assert user.id is not None
    assert user.hashed_password != "secret1"
    assert credential_store.verify_password(user, "secret1")


def test_duplicate_email_rejected_by_unique_index(db):
    credential_store.create(db, "Jane Doe", "jane@x.com", "secret1")
    with pytest.raises(DuplicateEmail):
        credential_store.create(db, "Other Jane", "jane@x.com", "secret2")
    assert db.query(User).filter(User.email == "jane@x.com").count() == 1


def test_session_usable_after_duplicate(db):
    credential_store.create(db, "Jane Doe", "jane@x.com", "secret1")
    with pytest.raises(DuplicateEmail):
        credential_store.create(db, "Jane Doe", "jane@x.com", "secret1")
    other = credential_store.create(db, "Sam Roe", "sam@mail.com", "secret1")
    assert other.id is not None


def test_find_by_email_is_case_sensitive(db):
    credential_store.create(db, "Jane Doe", "jane@x.com", "secret1")
    assert credential_store.find_by_email(db, "jane@x.com") is not None
    assert credential_store.find_by_email(db, "JANE@x.com") is None


def test_find_missing_user_returns_none(db):
    assert credential_store.find_by_id(db, 999) is None
    assert credential_store.find_by_email(db, "nobody@x.com") is None


def test_verify_password_tracks_latest_password(db):
    user = credential_store.create(db, "Jane Doe", "jane@x.com", "secret1")
    credential_store.update_password(db, user, "secret2")

    reloaded = credential_store.find_by_id(db, user.id)
    assert not credential_store.verify_password(reloaded, "secret1")
    assert credential_store.verify_password(reloaded, "secret2")


def test_verify_password_for_missing_user(db):
    assert credential_store.verify_password(None, "secret1") is False


def test_updates_persist(db):
    user = credential_store.create(db, "Jane Doe", "jane@x.com", "secret1")
    credential_store.update_full_name(db, user, "Jane Smith")
    credential_store.update_profile_image_reference(db, user, "https://cdn.example/a.png")

    db.expire_all()
    reloaded = credential_store.find_by_id(db, user.id)
    assert reloaded.full_name == "Jane Smith"
    assert reloaded.profile_image == "https://cdn.example/a.png"
    assert reloaded.email == "jane@x.com"


def test_settings_refuse_empty_secret():
    with pytest.raises(pydantic.ValidationError):
        Settings(SECRET_KEY="  ")
