"""
Tests for password hashing.
"""

from bookshelf.auth import PasswordHasher


def test_hash_is_salted(hasher):
    first = hasher.hash("password_6")
    second = hasher.hash("password_6")

    assert first != second
    assert hasher.verify("password_6", first)
    assert hasher.verify("password_6", second)


def test_hash_does_not_contain_plaintext(hasher):
    assert "password_6" not in hasher.hash("password_6")


def test_verify_rejects_wrong_password(hasher):
    hashed = hasher.hash("password_6")

    assert not hasher.verify("password_7", hashed)
    assert not hasher.verify("", hashed)


def test_verify_malformed_hash_returns_false(hasher):
    assert hasher.verify("password_6", "not-a-bcrypt-hash") is False


def test_rounds_are_encoded_in_hash():
    hashed = PasswordHasher(rounds=5).hash("password_6")

    assert hashed.startswith("$2b$05$")


def test_long_passwords_are_cut_at_72_bytes(hasher):
    long_password = "x" * 100
    hashed = hasher.hash(long_password)

    assert hasher.verify(long_password, hashed)
    assert hasher.verify("x" * 72, hashed)
