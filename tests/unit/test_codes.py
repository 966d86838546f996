import re

import pytest

from tablebook.domain.codes import (
    RESERVATION_CODE_PREFIX,
    TICKET_CODE_PREFIX,
    allocate_unique_code,
    generate_code,
    parse_record_id,
)
from tablebook.domain.exceptions import CodeAllocationExhaustedError, InvalidArgumentError

CODE_PATTERN = re.compile(r"^(RES|TKT)-[A-Z0-9]{8}$")


@pytest.mark.parametrize("prefix", [RESERVATION_CODE_PREFIX, TICKET_CODE_PREFIX])
def test_generated_codes_match_format(prefix):
    for _ in range(50):
        code = generate_code(prefix)
        assert CODE_PATTERN.match(code)
        assert code.startswith(f"{prefix}-")


def test_existing_codes_are_skipped():
    candidates = iter(["RES-AAAAAAAA", "RES-AAAAAAAA", "RES-BBBBBBBB"])
    taken = {"RES-AAAAAAAA"}

    code = allocate_unique_code(
        RESERVATION_CODE_PREFIX,
        exists=taken.__contains__,
        generator=lambda prefix: next(candidates),
    )

    assert code == "RES-BBBBBBBB"


def test_allocation_gives_up_after_bounded_attempts():
    calls = []

    def generator(prefix):
        calls.append(prefix)
        return "TKT-00000000"

    with pytest.raises(CodeAllocationExhaustedError) as exc_info:
        allocate_unique_code(
            TICKET_CODE_PREFIX,
            exists=lambda code: True,
            max_attempts=3,
            generator=generator,
        )

    assert len(calls) == 3
    assert exc_info.value.attempts == 3


def test_bulk_allocation_never_returns_a_taken_code():
    taken = set()
    for _ in range(10_000):
        code = allocate_unique_code(TICKET_CODE_PREFIX, exists=taken.__contains__)
        assert code not in taken
        taken.add(code)

    assert len(taken) == 10_000


def test_record_ids_are_normalised():
    assert (
        parse_record_id("6F9619FF-8B86-D011-B42D-00C04FC964FF")
        == "6f9619ff-8b86-d011-b42d-00c04fc964ff"
    )


@pytest.mark.parametrize("value", ["", "not-a-uuid", "1234", None])
def test_malformed_record_ids_are_rejected(value):
    with pytest.raises(InvalidArgumentError):
        parse_record_id(value, "table id")
