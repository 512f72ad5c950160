"""Tests for password hashing utilities."""

from greenreceipt.auth.password import hash_password, verify_password

# Low cost factor keeps the suite fast; the format is the same.
ROUNDS = 4


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password_produces_bcrypt_format(self):
        """hash_password should produce bcrypt format hash."""
        result = hash_password("test_password", rounds=ROUNDS)
        assert result.startswith("$2")

    def test_hash_password_returns_different_hash_each_time(self):
        """Salted hashes differ for the same password."""
        assert hash_password("test_password", rounds=ROUNDS) != hash_password("test_password", rounds=ROUNDS)

    def test_verify_password_correct_password(self):
        hashed = hash_password("my_secure_password", rounds=ROUNDS)
        assert verify_password("my_secure_password", hashed) is True

    def test_verify_password_wrong_password(self):
        hashed = hash_password("correct_password", rounds=ROUNDS)
        assert verify_password("wrong_password", hashed) is False

    def test_hash_password_unicode(self):
        password = "गुप्त-पासवर्ड-123"
        hashed = hash_password(password, rounds=ROUNDS)
        assert verify_password(password, hashed) is True

    def test_long_passwords_compared_in_full(self):
        """Passwords sharing the first 72 bytes must not match each other."""
        base = "a" * 72
        hashed = hash_password(base + "X", rounds=ROUNDS)
        assert verify_password(base + "X", hashed) is True
        assert verify_password(base + "Y", hashed) is False

    def test_verify_password_without_hash(self):
        """Accounts without a stored hash never match."""
        assert verify_password("anything", None) is False
        assert verify_password("anything", "") is False

    def test_verify_password_malformed_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False
