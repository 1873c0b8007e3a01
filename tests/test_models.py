"""Password hashing helpers on the User model."""
from subscriptions.models import User


def test_hash_is_not_the_raw_password():
    hashed = User.generate_hashed_password("secret1")
    assert hashed != "secret1"
    assert hashed.startswith("$argon2id$")


def test_hashes_are_salted():
    assert User.generate_hashed_password("secret1") != User.generate_hashed_password("secret1")


def test_verify_password():
    hashed = User.generate_hashed_password("secret1")
    assert User.verify_password(hashed, "secret1") is True
    assert User.verify_password(hashed, "secret2") is False


def test_verify_password_rejects_malformed_hash():
    assert User.verify_password("!secret1", "secret1") is False


def test_password_needs_rehash_for_current_parameters():
    assert User.password_needs_rehash(User.generate_hashed_password("secret1")) is False
