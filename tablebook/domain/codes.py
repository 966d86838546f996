# tablebook/domain/codes.py

import secrets
import string
from typing import Callable
from uuid import UUID

from tablebook.domain.exceptions import CodeAllocationExhaustedError, InvalidArgumentError

RESERVATION_CODE_PREFIX = "RES"
TICKET_CODE_PREFIX = "TKT"

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8
MAX_CODE_ATTEMPTS = 10


def generate_code(prefix: str) -> str:
    random_part = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
    return f"{prefix}-{random_part}"


def allocate_unique_code(
    prefix: str,
    exists: Callable[[str], bool],
    max_attempts: int = MAX_CODE_ATTEMPTS,
    generator: Callable[[str], str] = generate_code,
) -> str:
    """
    Generate codes until ``exists`` reports one as unused.
    Raises CodeAllocationExhaustedError after ``max_attempts`` collisions.
    """
    for _ in range(max_attempts):
        code = generator(prefix)
        if not exists(code):
            return code

    raise CodeAllocationExhaustedError(prefix=prefix, attempts=max_attempts)


def parse_record_id(value, name: str = "id") -> str:
    """Canonical string form of a UUID record id; InvalidArgumentError otherwise."""
    try:
        return str(UUID(str(value)))
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Invalid {name}: {value!r}") from exc
