"""
Authentication utilities: password hashing, login, session tokens.
"""
import logging
import re
import time
from typing import Optional

import bcrypt
from itsdangerous import BadSignature, URLSafeTimedSerializer

from chitfund import config
from chitfund.exceptions import AuthenticationError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_@.-]+$")
USER_FIELDS = "id, username, email, role, created_at, last_login"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        password_bytes = password.encode('utf-8')
        hash_bytes = password_hash.encode('utf-8')
        return bcrypt.checkpw(password_bytes, hash_bytes)
    except ValueError:
        return False


def get_user_by_id(store, user_id: int) -> Optional[dict]:
    return store.fetchone(
        f"SELECT {USER_FIELDS} FROM users WHERE id = ? AND is_active = 1", (user_id,)
    )


def authenticate_user(store, username: str, password: str) -> Optional[dict]:
    """
    Check credentials against the stored hash.
    Returns the user (without hash) and stamps last_login, or None.
    """
    row = store.fetchone("SELECT * FROM users WHERE username = ? AND is_active = 1", (username,))
    if not row:
        logger.info(f"Login failed, unknown user: {username}")
        return None

    if not verify_password(password, row['password_hash']):
        logger.info(f"Login failed, wrong password for: {username}")
        return None

    store.execute("UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE id = ?", (row['id'],))
    return get_user_by_id(store, row['id'])


def create_user(store, username: str, password: str, email: str, role: str = 'admin') -> dict:
    cursor = store.execute(
        "INSERT INTO users (username, password_hash, email, role) VALUES (?, ?, ?, ?)",
        (username, hash_password(password), email, role),
    )
    logger.info(f"User {username} created")
    return get_user_by_id(store, cursor.lastrowid)


def set_password(store, username: str, password: str):
    cursor = store.execute(
        "UPDATE users SET password_hash = ? WHERE username = ?",
        (hash_password(password), username),
    )
    if cursor.rowcount == 0:
        raise NotFoundError(f"User {username} not found")


def validate_login_input(username, password) -> tuple:
    """Reject malformed credentials before touching the store."""
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("username", "Username is required and must be a non-empty string")
    if not isinstance(password, str) or not password.strip():
        raise ValidationError("password", "Password is required and must be a non-empty string")

    username = username.strip()
    if not 3 <= len(username) <= 50:
        raise ValidationError("username", "Username must be between 3 and 50 characters")
    if not 6 <= len(password.strip()) <= 128:
        raise ValidationError("password", "Password must be between 6 and 128 characters")
    if not USERNAME_RE.match(username):
        raise ValidationError("username", "Username contains invalid characters")
    return username, password.strip()


class LoginThrottle:
    """In-memory count of recent failed logins per username."""

    def __init__(self, max_attempts: int = None, lockout_minutes: int = None, clock=time.monotonic):
        self.max_attempts = max_attempts or config.MAX_LOGIN_ATTEMPTS
        self.lockout_seconds = (lockout_minutes or config.LOCKOUT_DURATION) * 60
        self.clock = clock
        self._failures = {}

    def _recent(self, username: str) -> list:
        cutoff = self.clock() - self.lockout_seconds
        recent = [t for t in self._failures.get(username, []) if t > cutoff]
        if recent:
            self._failures[username] = recent
        else:
            self._failures.pop(username, None)
        return recent

    def is_locked(self, username: str) -> bool:
        return len(self._recent(username)) >= self.max_attempts

    def record_failure(self, username: str):
        self._failures[username] = self._recent(username) + [self.clock()]

    def clear(self, username: str):
        self._failures.pop(username, None)


def get_serializer():
    """Get the URL-safe serializer for session tokens."""
    return URLSafeTimedSerializer(config.SECRET_KEY, salt="chitfund-session")


def serialize_session(user: dict) -> str:
    return get_serializer().dumps({"id": user['id'], "username": user['username']})


def deserialize_session(token: str) -> Optional[dict]:
    """Payload of a valid, unexpired token, or None."""
    if not token:
        return None
    try:
        return get_serializer().loads(token, max_age=config.SESSION_MAX_AGE)
    except BadSignature:
        return None


def login(store, username, password, throttle: LoginThrottle) -> dict:
    """Validate credentials and issue a session token."""
    username, password = validate_login_input(username, password)

    if throttle.is_locked(username):
        raise AuthenticationError(
            f"Too many failed login attempts. Please try again in {throttle.lockout_seconds // 60} minutes."
        )

    user = authenticate_user(store, username, password)
    if not user:
        throttle.record_failure(username)
        raise AuthenticationError("Invalid credentials")

    throttle.clear(username)
    logger.info(f"User {username} logged in")
    return {"token": serialize_session(user), "user": user}


def validate_session(store, token: str) -> Optional[dict]:
    """User for a session token, or None if the token or user is no longer valid."""
    payload = deserialize_session(token)
    if not payload:
        return None
    return get_user_by_id(store, payload.get("id"))
