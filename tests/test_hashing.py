"""Tests for password and token hashing."""

from skillbridge.utils.hashing import (
    PASSWORD_ALGORITHM,
    generate_token,
    hash_password,
    hash_string,
    hash_token,
    verify_password,
)


class TestHashString:
    def test_hash_is_sha256_hex(self):
        digest = hash_string("hello")

        assert len(digest) == 64
        assert digest == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"

    def test_token_digest_is_stable(self):
        assert hash_token("abc") == hash_token("abc")
        assert hash_token("abc") != hash_token("abd")


class TestGenerateToken:
    def test_tokens_are_unique_and_url_safe(self):
        tokens = {generate_token() for _ in range(20)}

        assert len(tokens) == 20
        assert all("+" not in token and "/" not in token for token in tokens)


class TestPasswords:
    def test_round_trip(self):
        encoded = hash_password("Secret123", iterations=1000)

        assert encoded.startswith(f"{PASSWORD_ALGORITHM}$1000$")
        assert verify_password("Secret123", encoded) is True
        assert verify_password("secret123", encoded) is False

    def test_salt_differs_per_hash(self):
        assert hash_password("Secret123", iterations=1000) != hash_password("Secret123", iterations=1000)

    def test_malformed_values_never_verify(self):
        assert verify_password("Secret123", "") is False
        assert verify_password("Secret123", "plain-text") is False
        assert verify_password("Secret123", "md5$1000$salt$hash") is False
        assert verify_password("Secret123", "pbkdf2_sha256$many$salt$hash") is False
