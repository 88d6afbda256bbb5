"""
Unit tests for chitfund/auth.py -- hashing, credential checks, login
throttling and session tokens.
"""
import os
import sys
import pytest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from chitfund.auth import (
    LoginThrottle,
    authenticate_user,
    create_user,
    deserialize_session,
    hash_password,
    login,
    serialize_session,
    set_password,
    validate_login_input,
    validate_session,
    verify_password,
)
from chitfund.exceptions import AuthenticationError, ConstraintError, NotFoundError, ValidationError

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


# ── Password hashing ─────────────────────────────────────────────────

class TestPasswordHashing:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("mypassword")
        assert hashed != "mypassword"
        assert hashed.startswith("$2")

    def test_verify_correct_password(self):
        assert verify_password("correct", hash_password("correct")) is True

    def test_verify_wrong_password(self):
        assert verify_password("wrong", hash_password("correct")) is False

    def test_verify_malformed_hash(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


# ── Users ────────────────────────────────────────────────────────────

class TestUsers:
    def test_authenticate_stamps_last_login(self, store):
        user = authenticate_user(store, "admin", "admin123")
        assert user["username"] == "admin"
        assert user["last_login"] is not None
        assert "password_hash" not in user

    def test_authenticate_wrong_password(self, store):
        assert authenticate_user(store, "admin", "nope-nope") is None

    def test_authenticate_unknown_user(self, store):
        assert authenticate_user(store, "ghost", "admin123") is None

    def test_inactive_user_cannot_authenticate(self, store):
        store.execute("UPDATE users SET is_active = 0 WHERE username = 'admin'")
        assert authenticate_user(store, "admin", "admin123") is None

    def test_create_user(self, store):
        user = create_user(store, "cashier", "cashier123", "cashier@example.com", role="staff")
        assert user["role"] == "staff"
        assert authenticate_user(store, "cashier", "cashier123")["id"] == user["id"]

    def test_duplicate_username(self, store):
        with pytest.raises(ConstraintError):
            create_user(store, "admin", "whatever1", "other@example.com")

    def test_set_password(self, store):
        set_password(store, "admin", "new-secret")
        assert authenticate_user(store, "admin", "admin123") is None
        assert authenticate_user(store, "admin", "new-secret") is not None

    def test_set_password_unknown_user(self, store):
        with pytest.raises(NotFoundError):
            set_password(store, "ghost", "new-secret")


# ── Input validation ─────────────────────────────────────────────────

class TestValidateLoginInput:
    def test_valid_input_is_trimmed(self):
        assert validate_login_input("  admin ", "admin123") == ("admin", "admin123")

    @pytest.mark.parametrize("username,password,field", [
        (None, "admin123", "username"),
        ("   ", "admin123", "username"),
        ("admin", "", "password"),
        ("admin", 123456, "password"),
        ("ab", "admin123", "username"),
        ("a" * 51, "admin123", "username"),
        ("admin", "short", "password"),
        ("admin", "x" * 129, "password"),
        ("ad min", "admin123", "username"),
        ("admin!", "admin123", "username"),
    ])
    def test_rejected(self, username, password, field):
        with pytest.raises(ValidationError) as exc:
            validate_login_input(username, password)
        assert exc.value.field == field

    def test_email_style_username_allowed(self):
        assert validate_login_input("admin@nxq.com", "admin123")[0] == "admin@nxq.com"

    def test_padded_password_is_trimmed(self):
        assert validate_login_input("admin", "  admin123  ") == ("admin", "admin123")


# ── Throttle ─────────────────────────────────────────────────────────

class TestLoginThrottle:
    def test_locks_after_max_attempts(self):
        throttle = LoginThrottle(max_attempts=3, lockout_minutes=15, clock=FakeClock())
        for _ in range(2):
            throttle.record_failure("admin")
        assert not throttle.is_locked("admin")
        throttle.record_failure("admin")
        assert throttle.is_locked("admin")

    def test_lock_expires(self):
        clock = FakeClock()
        throttle = LoginThrottle(max_attempts=2, lockout_minutes=15, clock=clock)
        throttle.record_failure("admin")
        throttle.record_failure("admin")
        clock.now += 15 * 60 + 1
        assert not throttle.is_locked("admin")
        assert "admin" not in throttle._failures

    def test_clear_resets(self):
        throttle = LoginThrottle(max_attempts=1, clock=FakeClock())
        throttle.record_failure("admin")
        throttle.clear("admin")
        assert not throttle.is_locked("admin")
        assert throttle._failures == {}

    def test_expired_usernames_are_forgotten(self):
        clock = FakeClock()
        throttle = LoginThrottle(max_attempts=5, lockout_minutes=15, clock=clock)
        for n in range(100):
            throttle.record_failure(f"user{n}")
        clock.now += 15 * 60 + 1
        for n in range(100):
            assert not throttle.is_locked(f"user{n}")
        assert throttle._failures == {}

    def test_users_are_independent(self):
        throttle = LoginThrottle(max_attempts=1, clock=FakeClock())
        throttle.record_failure("admin")
        assert not throttle.is_locked("cashier")

    def test_defaults_from_config(self):
        throttle = LoginThrottle()
        assert throttle.max_attempts == 5
        assert throttle.lockout_seconds == 15 * 60


# ── Sessions ─────────────────────────────────────────────────────────

class TestSessions:
    def test_round_trip(self):
        token = serialize_session({"id": 1, "username": "admin"})
        assert deserialize_session(token) == {"id": 1, "username": "admin"}

    def test_tampered_token(self):
        token = serialize_session({"id": 1, "username": "admin"})
        assert deserialize_session(token + "x") is None

    def test_empty_token(self):
        assert deserialize_session("") is None
        assert deserialize_session(None) is None

    def test_expired_token(self):
        token = serialize_session({"id": 1, "username": "admin"})
        with patch("chitfund.auth.config.SESSION_MAX_AGE", -1):
            assert deserialize_session(token) is None

    def test_token_from_other_key_rejected(self):
        token = serialize_session({"id": 1, "username": "admin"})
        with patch("chitfund.auth.config.SECRET_KEY", "a-different-key"):
            assert deserialize_session(token) is None

    def test_validate_session_returns_user(self, store):
        result = login(store, "admin", "admin123", LoginThrottle())
        assert validate_session(store, result["token"])["username"] == "admin"

    def test_validate_session_for_deactivated_user(self, store):
        result = login(store, "admin", "admin123", LoginThrottle())
        store.execute("UPDATE users SET is_active = 0")
        assert validate_session(store, result["token"]) is None


# ── login ────────────────────────────────────────────────────────────

class TestLogin:
    def test_success(self, store):
        result = login(store, "admin", "admin123", LoginThrottle())
        assert result["user"]["username"] == "admin"
        assert result["token"]

    def test_invalid_credentials(self, store):
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            login(store, "admin", "wrong-password", LoginThrottle())

    def test_lockout_after_repeated_failures(self, store):
        throttle = LoginThrottle(max_attempts=5, lockout_minutes=15, clock=FakeClock())
        for _ in range(5):
            with pytest.raises(AuthenticationError):
                login(store, "admin", "wrong-password", throttle)

        with pytest.raises(AuthenticationError, match="15 minutes"):
            login(store, "admin", "admin123", throttle)

    def test_success_clears_failures(self, store):
        throttle = LoginThrottle(max_attempts=2, clock=FakeClock())
        with pytest.raises(AuthenticationError):
            login(store, "admin", "wrong-password", throttle)
        login(store, "admin", "admin123", throttle)
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            login(store, "admin", "wrong-password", throttle)
        assert not throttle.is_locked("admin")

    def test_padded_password_accepted(self, store):
        result = login(store, "admin", "  admin123  ", LoginThrottle())
        assert result["user"]["username"] == "admin"

    def test_malformed_input_does_not_count(self, store):
        throttle = LoginThrottle(max_attempts=1, clock=FakeClock())
        with pytest.raises(ValidationError):
            login(store, "admin", "x", throttle)
        assert not throttle.is_locked("admin")
