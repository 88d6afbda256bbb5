"""
Customer code generation.

Two formats exist: scheme-scoped codes ``PREFIX-n`` and legacy global codes
``PREFIX`` + three-digit number. Migrated rows carry ``PREFIX NNN``.

next_customer_code() reads the last code and formats the next one without
holding a lock, so on its own it is only a preview: two callers can get the
same answer. Callers that insert must run it inside store.transaction(
immediate=True) together with the insert, as records.add_customer does.
"""
import logging
import re
from typing import Optional

from chitfund import config
from chitfund.exceptions import NotFoundError

logger = logging.getLogger(__name__)

TRAILING_DIGITS_RE = re.compile(r"(\d+)$")
SCHEME_SUFFIX_RE = re.compile(r"-(\d+)$")


def backfill_code(prefix: str, index: int) -> str:
    """Code given to pre-existing customers when the code column is added."""
    return f"{prefix} {index:03d}"


def normalize_customer_code(code: str) -> str:
    """Strip all whitespace and lower-case, for duplicate detection."""
    return re.sub(r"\s+", "", code or "").lower()


def code_sequence_number(code: str) -> Optional[int]:
    match = TRAILING_DIGITS_RE.search(code or "")
    return int(match.group(1)) if match else None


def next_customer_code(store, scheme_id: int = None) -> str:
    """Next sequential customer code, scoped to a scheme when one is given."""
    if scheme_id:
        scheme = store.fetchone("SELECT prefix FROM schemes WHERE id = ?", (scheme_id,))
        if not scheme:
            raise NotFoundError(f"Scheme {scheme_id} not found")

        prefix = scheme["prefix"]
        row = store.fetchone(
            """SELECT customer_code FROM customers
               WHERE customer_code LIKE ? AND scheme_id = ?
               ORDER BY id DESC LIMIT 1""",
            (f"{prefix}-%", scheme_id),
        )
        next_number = 1
        if row:
            match = SCHEME_SUFFIX_RE.search(row["customer_code"])
            if match:
                next_number = int(match.group(1)) + 1
        code = f"{prefix}-{next_number}"
    else:
        prefix = config.CUSTOMER_CODE_PREFIX
        row = store.fetchone(
            "SELECT customer_code FROM customers WHERE customer_code LIKE ? ORDER BY id DESC LIMIT 1",
            (f"{prefix}%",),
        )
        next_number = 1
        if row:
            last = code_sequence_number(row["customer_code"])
            if last is not None:
                next_number = last + 1
        code = f"{prefix}{next_number:03d}"

    logger.debug(f"Generated customer code {code}")
    return code
