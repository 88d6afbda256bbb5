"""Domain exceptions for the chit-fund ledger."""


class ChitFundError(Exception):
    """Base exception for all ledger errors."""
    status_code = 400


class ValidationError(ChitFundError):
    """Malformed or missing input field."""

    def __init__(self, field, message=None):
        self.field = field
        super().__init__(message or f"Invalid value for {field}")


class NotFoundError(ChitFundError):
    """Referenced scheme, customer, winner or user does not exist."""
    status_code = 404


class BalanceExceededError(ChitFundError):
    """Delivery would overdraw a winner's winning amount."""
    status_code = 409

    def __init__(self, message, remaining):
        self.remaining = remaining
        super().__init__(message)


class ConstraintError(ChitFundError):
    """Uniqueness violation reported by the store."""
    status_code = 409


class ConnectionError(ChitFundError):
    """Store handle is unavailable."""
    status_code = 503


class MigrationError(ChitFundError):
    """Schema migration chain failed; the store must not be used."""
    status_code = 500


class AuthenticationError(ChitFundError):
    """Invalid credentials, bad session token or login lockout."""
    status_code = 401
