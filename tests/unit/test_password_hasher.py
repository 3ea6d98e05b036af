from __future__ import annotations

from account_service.infrastructure.security.password_hasher import BcryptPasswordHasher


def test_hash_password_never_stores_plaintext_and_verifies() -> None:
    hasher = BcryptPasswordHasher(rounds=4)
    password = "Sunrise#2024"

    password_hash = hasher.hash_password(password)

    assert password_hash != password
    assert password not in password_hash
    assert hasher.verify_password(password=password, password_hash=password_hash) is True


def test_wrong_password_fails_verification() -> None:
    hasher = BcryptPasswordHasher(rounds=4)
    password_hash = hasher.hash_password("correct")

    assert hasher.verify_password(password="wrong", password_hash=password_hash) is False


def test_same_password_hashes_differ_but_both_verify() -> None:
    hasher = BcryptPasswordHasher(rounds=4)

    first = hasher.hash_password("Sunrise#2024")
    second = hasher.hash_password("Sunrise#2024")

    assert first != second
    assert hasher.verify_password(password="Sunrise#2024", password_hash=second)


def test_malformed_hash_fails_verification() -> None:
    hasher = BcryptPasswordHasher(rounds=4)

    assert hasher.verify_password(password="x", password_hash="not-a-bcrypt-hash") is False
