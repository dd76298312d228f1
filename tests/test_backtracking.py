# tests/test_backtracking.py
from pybacktrack.Char import char
from pybacktrack.Parsec import Error, Ok, State
from pybacktrack.Prim import string


def test_choice_backtracks_after_consumption():
    """
    (char('a') > char('b')) | char('a')
    Input: 'ac'

    1. First parser matches 'a', then fails on 'c' (expected 'b').
    2. The failure reports the starting state, so nothing stays consumed.
    3. The second branch runs from the start and matches 'a'.
    """
    parser = (char("a") > char("b")) | char("a")

    state = State("ac")
    result = parser(state)

    assert isinstance(result, Ok)
    assert result.value == "a"
    assert result.state.pos == 1


def test_failed_sequence_reports_start_state():
    parser = (char("a") > char("b")) > char("c")

    state = State("xabd", 1)
    result = parser(state)

    assert isinstance(result, Error)
    assert result.state == state
    # ...while the error points at the character that broke the match
    assert result.error.pos == 3
    assert result.error.expected == ["'c'"]


def test_swallowed_error_is_reported_if_furthest():
    """
    The first branch gets further than the second, so its failure is the one
    shown to the user.
    """
    parser = (string("ab") > char("c")) | char("x")

    result = parser(State("abd"))

    assert isinstance(result, Error)
    assert result.error.pos == 2
    assert result.error.actual == "d"


def test_ties_merge_expectations():
    parser = char("a") | char("b") | char("c")
    result = parser(State("z"))
    assert result.error.expected == ["'a'", "'b'", "'c'"]
