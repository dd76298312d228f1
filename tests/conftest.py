# tests/conftest.py
import pytest

from pybacktrack.Parsec import Error, Ok, ParseResult, State


def assert_result_eq(res1: ParseResult, res2: ParseResult):
    """
    Deep comparison of two ParseResults.
    """
    if isinstance(res1, Ok):
        assert isinstance(res2, Ok), "Result mismatch: Ok vs Error"
        assert res1.value == res2.value
        assert res1.state == res2.state
    else:
        assert isinstance(res2, Error), "Result mismatch: Error vs Ok"
        assert res1.state == res2.state
        assert res1.error == res2.error


def assert_rolled_back(res: ParseResult, before: State):
    """A failed result must report the state it started from."""
    assert isinstance(res, Error)
    assert res.state == before


@pytest.fixture
def initial_state():
    def _make(input_data, pos=0):
        return State(input_data, pos)

    return _make
