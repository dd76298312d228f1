from typing import Callable
from .Parsec import Parsec, State, ParseError, ParseResult, Ok, Error, Input
from .Prim import take_while

_DIGITS = "0123456789"
_HEX_DIGITS = "0123456789abcdefABCDEF"


def _as_text(c: Input) -> str:
    return c.decode("latin-1") if isinstance(c, bytes) else c


# Core function: Succeeds if the next character satisfies a predicate
def satisfy(f: Callable[[Input], bool], expected: str = "character") -> Parsec[Input]:
    """Succeeds for any character where f returns True. Returns the parsed character."""
    def parse(state: State) -> ParseResult[Input]:
        c = state.upcoming()
        if c is not None and f(c):
            return Ok(c, state.advance(1))
        return Error(state, ParseError(state.pos, [expected], c))
    return Parsec(parse)


# 1. char: Parses a single character
def char(c: str) -> Parsec[Input]:
    """Parses a single character c and returns it."""
    return satisfy(lambda x: _as_text(x) == c, f"'{c}'")


# 2. anyOf: Parses any character in cs
def any_of(cs: str) -> Parsec[Input]:
    """Succeeds if the current character is in cs. Returns the parsed character."""
    return satisfy(lambda c: _as_text(c) in cs, f"one of {cs!r}")


# 3. noneOf: Parses any character not in cs
def none_of(cs: str) -> Parsec[Input]:
    """Succeeds if the current character is not in cs. Returns the parsed character."""
    return satisfy(lambda c: _as_text(c) not in cs, f"none of {cs!r}")


# 4. digit: Parses an ASCII digit
def digit() -> Parsec[Input]:
    """Parses an ASCII digit and returns it."""
    return satisfy(lambda c: _as_text(c) in _DIGITS, "digit")


# 5. hexDigit: Parses a hexadecimal digit
def hex_digit() -> Parsec[Input]:
    """Parses a hexadecimal digit (0-9, a-f, A-F) and returns it."""
    return satisfy(lambda c: _as_text(c) in _HEX_DIGITS, "hexadecimal digit")


# 6. spaces: Skips zero or more whitespace characters
def spaces(chars: str = " \n") -> Parsec[Input]:
    """Skips zero or more characters from `chars`, returning the skipped run."""
    return take_while(lambda c: _as_text(c) in chars)
