from .Parsec import Parsec, State, ParseError, ParseResult, Ok, Error, Input, T
from typing import Any, Callable, Optional, Tuple

_AT_CURSOR: Any = object()


def pure(value: T) -> Parsec[T]:
    """Return a parser that succeeds with a value without consuming input."""
    def parse(state: State) -> ParseResult[T]:
        return Ok(value, state)
    return Parsec(parse)


def fail(expected: str, actual: Optional[Input] = _AT_CURSOR) -> Parsec[Any]:
    """
    A parser that always fails at the cursor, expecting `expected`.
    `actual` defaults to the character under the cursor; None means end of input.
    """
    def parse(state: State) -> ParseResult[Any]:
        found = state.upcoming() if actual is _AT_CURSOR else actual
        return Error(state, ParseError(state.pos, [expected], found))
    return Parsec(parse)


def take(n: int) -> Parsec[Input]:
    """Consume exactly n characters and return them."""
    def parse(state: State) -> ParseResult[Input]:
        if n < 0 or state.remaining() < n:
            # A negative count would move the cursor backwards
            return Error(state, ParseError(state.pos, [f"{n} characters"], state.upcoming(max(n, 1))))
        return Ok(state.input[state.pos:state.pos + n], state.advance(n))
    return Parsec(parse)


def string(literal: Input) -> Parsec[Input]:
    """Match `literal` verbatim at the cursor, all at once."""
    n = len(literal)

    def parse(state: State) -> ParseResult[Input]:
        if state.input.startswith(literal, state.pos):
            return Ok(literal, state.advance(n))
        return Error(state, ParseError(state.pos, [repr(literal)], state.upcoming(n)))
    return Parsec(parse)


def take_while(predicate: Callable[[Input], bool]) -> Parsec[Input]:
    """
    Consume the longest run of characters satisfying `predicate`, possibly empty.
    The predicate receives one-character slices, so it sees `str` or `bytes`
    depending on the input.
    """
    def parse(state: State) -> ParseResult[Input]:
        data = state.input
        end = len(data)
        i = state.pos
        while i < end and predicate(data[i:i + 1]):
            i += 1
        return Ok(data[state.pos:i], State(data, i))
    return Parsec(parse)


def peek() -> Parsec[Optional[Input]]:
    """Return the next character, or None at end of input, without consuming it."""
    def parse(state: State) -> ParseResult[Optional[Input]]:
        return Ok(state.upcoming(), state)
    return Parsec(parse)


def lazy(thunk: Callable[[], Parsec[T]]) -> Parsec[T]:
    """Build the parser on first use, so rules can refer to each other recursively."""
    cache = []

    def parse(state: State) -> ParseResult[T]:
        if not cache:
            cache.append(thunk())
        return cache[0](state)
    return Parsec(parse)


def run_parser(parser: Parsec[T], input: Input) -> Tuple[Optional[T], Optional[ParseError]]:
    """Run `parser` from the start of `input`. A None error means success."""
    res = parser(State(input, 0))
    if isinstance(res, Error):
        return None, res.error
    return res.value, None
