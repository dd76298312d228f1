import json
import logging
import math

import pytest
from hypothesis import given, strategies as st

from pybacktrack.Json import JsonParseError, JsonParser, loads, parse
from pybacktrack.Language import JsonDef, json_def, strict_def
from pybacktrack.Parsec import State


def value_of(text, lang=json_def):
    value, err = parse(text, lang)
    assert err is None, str(err)
    return value


# --- Documents ---

@pytest.mark.parametrize("text, expected", [
    ("{}", {}),
    ("null", None),
    ("[]", []),
    ('{"a": "b"}', {"a": "b"}),
    ('{"a": null}', {"a": None}),
    ('{"a": [0]}', {"a": [0]}),
    ('{"a": [0, 1]}', {"a": [0, 1]}),
    ('{"a": [0, 1], "b": null}', {"a": [0, 1], "b": None}),
    ('{"a": [0, 1], "b": {"c": "d"}}', {"a": [0, 1], "b": {"c": "d"}}),
    ('{       "a":    "b"   }', {"a": "b"}),
    ('{"a": 12.1}', {"a": 12.1}),
    ("true", True),
    ("false", False),
    ('""', ""),
    ("[true, false, null]", [True, False, None]),
    ("[ 1 , 2 ]", [1, 2]),
    ("\n [\n  1\n ]", [1]),
])
def test_parses(text, expected):
    assert value_of(text) == expected


def test_whitespace_tolerance():
    assert value_of('{   "a"  :   "b"   }') == value_of('{"a":"b"}')


def test_duplicate_keys_last_write_wins():
    assert value_of('{"a": 1, "b": 2, "a": 3}') == {"a": 3, "b": 2}


def test_tab_is_not_whitespace_by_default():
    _, err = parse('[\t1]')
    assert err is not None


def test_trailing_text_is_ignored_by_default():
    assert value_of('[1] trailing') == [1]
    assert value_of('{"a": 1}}') == {"a": 1}


def test_bytes_input():
    assert value_of('{"k": "é"}'.encode("utf-8")) == {"k": "é"}


def test_invalid_utf8_fails_at_the_byte():
    value, err = parse(b'["\xff"]')
    assert value is None
    assert err.pos == 2
    assert err.expected == ["UTF-8 text"]
    assert err.actual == b"\xff"
    with pytest.raises(JsonParseError):
        loads(b"\xc3")


# --- Strings ---

def test_strings_are_raw_by_default():
    assert value_of(r'"a\nb"') == "a\\nb"
    assert value_of('"tab\there"') == "tab\there"


def test_escaped_quote_ends_raw_string():
    # The raw grammar stops at the first quote, backslash or not
    assert value_of(r'"a\"b"') == "a\\"


# --- Numbers ---

@pytest.mark.parametrize("text, expected", [
    ("0", 0),
    ("-3", -3),
    ("+7", 7),
    ("1.5", 1.5),
    ("12.1", 12.1),
    ("2e3", 2000.0),
    ("2E3", 2000.0),
    ("2e+3", 2000.0),
    ("2e-3", 0.002),
    ("1.5e2", 150.0),
    ("123456789012345678901234567890", 123456789012345678901234567890),
])
def test_numbers(text, expected):
    result = value_of(text)
    assert result == expected
    assert type(result) is type(expected)


def test_fraction_leading_zeros_are_dropped():
    # The fraction "05" is read as the integer 5, one digit long
    assert value_of("1.05") == 1.5
    assert value_of("1.005") == 1.5


def test_fraction_is_added_to_negative_integer_part():
    assert value_of("-1.5") == -0.5


def test_integer_without_fraction_is_exact():
    assert value_of("-3") == -3
    assert isinstance(value_of("-3"), int)


@pytest.mark.parametrize("text", ["-", "1.", "1.e5", "1e", "1e+", ".5", "-.5"])
def test_incomplete_numbers_fail(text):
    _, err = parse("[" + text + "]")
    assert err is not None


def test_introducer_without_digits_fails_the_number():
    parser = JsonParser()
    res = parser.number(State("1.x"))
    assert res.error.pos == 2
    assert "digit" in res.error.expected


def test_huge_exponent_overflows_to_infinity():
    assert value_of("1e400") == math.inf
    assert value_of("-1e400") == -math.inf
    assert value_of("1e-400") == 0.0


# --- Failures ---

def test_failure_locality():
    _, err = parse('{"a": }')
    assert err.pos == 6
    assert err.actual == "}"


def test_failure_at_end_of_input():
    _, err = parse('[1, 2')
    assert err.pos == 5
    assert err.actual is None
    assert "end of input" in str(err)


def test_unknown_token():
    _, err = parse('nul')
    assert err.pos == 0
    assert "'null'" in err.expected
    assert "'{'" in err.expected


def test_loads_raises():
    with pytest.raises(JsonParseError) as exc_info:
        loads('[1,]')
    assert exc_info.value.pos == 3
    assert isinstance(exc_info.value, ValueError)
    assert "offset 3" in str(exc_info.value)


def test_loads_returns_value():
    assert loads('{"a": [1, 2.5]}') == {"a": [1, 2.5]}


# --- Strict definition ---

def test_strict_exact_fractions():
    assert value_of("1.05", strict_def) == 1.05
    assert value_of("-1.5", strict_def) == -1.5
    assert value_of("-0.5", strict_def) == -0.5


def test_strict_decodes_escapes():
    assert value_of(r'"a\"b\\c\/d\n\t"', strict_def) == 'a"b\\c/d\n\t'
    assert value_of(r'"caf\u00e9"', strict_def) == "caf\u00e9"
    assert value_of(r'"\ud83d\ude00!"', strict_def) == "\U0001F600!"
    assert value_of('"\U0001F600"', strict_def) == "\U0001F600"


def test_strict_rejects_unknown_escape():
    _, err = parse(r'"a\x"', strict_def)
    assert err.pos == 3
    assert err.actual == "x"


def test_strict_rejects_trailing_text():
    _, err = parse('[1] x', strict_def)
    assert err.pos == 4
    assert "end of input" in err.expected
    assert value_of(' [1]\r\n', strict_def) == [1]


def test_strict_whitespace():
    assert value_of('{\t"a":\r\n1}', strict_def) == {"a": 1}


def test_trace_logs_rules(caplog):
    lang = JsonDef(trace=True)
    with caplog.at_level(logging.DEBUG, logger="pybacktrack.trace"):
        assert value_of("[1]", lang) == [1]
        parse('{"a": }', lang)
    assert "array matched up to offset 3" in caplog.text
    assert "number matched" in caplog.text
    assert "object backtracked to offset 0" in caplog.text


def test_rules_run_on_their_own():
    parser = JsonParser()
    res = parser.key_value_pair(State('"a" : [1]'))
    assert res.value == ("a", [1])
    assert parser.object(State('{"a": 1} x')).value == {"a": 1}
    assert parser.array(State('[1] x')).state.pos == 4

    res = parser.object(State(' {}'))
    assert res.error.pos == 0
    assert res.error.expected == ["'{'"]


def test_parser_is_reusable():
    parser = JsonParser()
    assert parser.run("[1]") == ([1], None)
    assert parser.run('{"a": true}') == ({"a": True}, None)


# --- Agreement with the standard library decoder ---

plain_text = st.text(
    alphabet=st.characters(exclude_categories=("Cs", "Cc"), exclude_characters='"\\'),
    max_size=10,
)
# Non-negative with dyadic fractions that do not start with 0, so the sum
# of integer and fraction parts is exact
plain_floats = st.builds(
    lambda whole, frac: float(f"{whole}.{frac}"),
    st.integers(min_value=0, max_value=10 ** 6),
    st.sampled_from(["5", "25", "75", "125", "375", "625", "875"]),
)
json_values = st.recursive(
    st.none() | st.booleans() | st.integers() | plain_floats | plain_text,
    lambda children: st.lists(children, max_size=5) | st.dictionaries(plain_text, children, max_size=5),
    max_leaves=20,
)


@given(json_values)
def test_agrees_with_stdlib(doc):
    text = json.dumps(doc, ensure_ascii=False)
    assert value_of(text) == json.loads(text)


@given(json_values)
def test_agrees_with_stdlib_indented(doc):
    text = json.dumps(doc, ensure_ascii=False, indent=2)
    assert value_of(text) == json.loads(text)


@given(st.floats(allow_nan=False, allow_infinity=False, min_value=-1e6, max_value=1e6)
       .map(lambda f: round(f, 3)))
def test_exact_fractions_close_to_stdlib(f):
    text = repr(f)
    assert math.isclose(value_of(text, strict_def), json.loads(text), rel_tol=1e-12, abs_tol=1e-12)
