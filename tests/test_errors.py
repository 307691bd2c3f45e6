import pytest

from saju.errors import (IndexOutOfRangeError, InvalidInputError, SajuError, TermNotFoundError,
                         require_index)


def test_taxonomy_bases():
    assert issubclass(InvalidInputError, ValueError)
    assert issubclass(TermNotFoundError, RuntimeError)
    assert issubclass(IndexOutOfRangeError, AssertionError)
    for cls in (InvalidInputError, TermNotFoundError, IndexOutOfRangeError):
        assert issubclass(cls, SajuError)


def test_error_carries_code_and_details():
    err = InvalidInputError("bad day", code="INVALID_DATE", day=32)
    assert err.code == "INVALID_DATE"
    assert err.to_dict() == {"code": "INVALID_DATE", "message": "bad day", "details": {"day": 32}}
    assert "INVALID_DATE" in str(err)


def test_default_code():
    assert InvalidInputError("x").code == "INVALID_INPUT"
    assert SajuError("x").code == "CALCULATION_FAILED"


def test_require_index():
    assert require_index(9, 10, "stem") == 9
    with pytest.raises(IndexOutOfRangeError):
        require_index(10, 10, "stem")
    with pytest.raises(IndexOutOfRangeError):
        require_index(-1, 12, "branch")
    with pytest.raises(IndexOutOfRangeError):
        require_index(True, 12, "branch")
