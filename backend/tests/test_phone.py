import pytest

from campaign_guide.guidelines.services.phone import is_canonical_phone, normalize_phone


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("01012345678", "010-1234-5678"),
        ("010 1234 5678", "010-1234-5678"),
        ("010.1234.5678", "010-1234-5678"),
        ("0212345678", "02-1234-5678"),
        ("021234567", "02-123-4567"),
        ("(02) 123-4567", "02-123-4567"),
        ("0311234567", "031-123-4567"),
        ("+82 10-1234-5678", "010-1234-5678"),
        ("+82 010 1234 5678", "010-1234-5678"),
        ("82-2-1234-5678", "02-1234-5678"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", ["1588-1234", "  123  ", "문의 바람"])
def test_normalize_phone_returns_trimmed_input_for_unknown_shapes(raw):
    assert normalize_phone(raw) == raw.strip()


@pytest.mark.parametrize(
    "raw",
    ["01012345678", "+82 10-1234-5678", "02 123 4567", "1588-1234", "031-123-4567"],
)
def test_normalize_phone_is_idempotent(raw):
    once = normalize_phone(raw)
    assert normalize_phone(once) == once


def test_is_canonical_phone():
    assert is_canonical_phone("010-1234-5678")
    assert is_canonical_phone("02-123-4567")
    assert not is_canonical_phone("1588-1234")
    assert not is_canonical_phone("01012345678")
    assert not is_canonical_phone(None)
    assert not is_canonical_phone("")
