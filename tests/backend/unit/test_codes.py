import pytest

from scrumpoker.backend.codes import (
    ROOM_CODE_ALPHABET,
    generate_connection_id,
    generate_room_code,
    normalize_room_code,
)
from scrumpoker.backend.errors import CapacityExhausted


def _scripted_choice(symbols: str):
    stream = iter(symbols)
    return lambda alphabet: next(stream)


def test_generate_room_code_uses_five_uppercase_alphanumerics() -> None:
    code = generate_room_code(set())

    assert len(code) == 5
    assert all(symbol in ROOM_CODE_ALPHABET for symbol in code)


def test_generate_room_code_retries_on_collision() -> None:
    choice = _scripted_choice("AAAAA" + "AAAAA" + "B1C2D")

    code = generate_room_code({"AAAAA"}, choice=choice)

    assert code == "B1C2D"


def test_generate_room_code_raises_when_attempts_exhausted() -> None:
    with pytest.raises(CapacityExhausted):
        generate_room_code({"ZZZZZ"}, choice=lambda alphabet: "Z", max_attempts=3)


def test_generate_connection_id_returns_distinct_values() -> None:
    first = generate_connection_id()
    second = generate_connection_id()

    assert first
    assert first != second


def test_normalize_room_code_uppercases_and_strips() -> None:
    assert normalize_room_code(" ab12c ") == "AB12C"
