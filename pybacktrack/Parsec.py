from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar, Union

T = TypeVar('T')  # Generic type for parser results
U = TypeVar('U')

Input = Union[str, bytes]


@dataclass
class SourcePos:
    """Line/column view of an offset, for error display."""
    line: int = 1
    column: int = 1
    name: str = ""

    @staticmethod
    def from_offset(input: Input, offset: int, name: str = "") -> 'SourcePos':
        newline = b"\n" if isinstance(input, bytes) else "\n"
        line = input.count(newline, 0, offset) + 1
        last_nl = input.rfind(newline, 0, offset)
        return SourcePos(line, offset - last_nl, name)

    def __str__(self) -> str:
        return f"{self.name} line {self.line}, column {self.column}".lstrip()


@dataclass(frozen=True)
class State:
    """Parser state: the input buffer and the cursor offset into it."""
    input: Input
    pos: int = 0

    def advance(self, n: int) -> 'State':
        return State(self.input, self.pos + n)

    def remaining(self) -> int:
        return len(self.input) - self.pos

    def at_end(self) -> bool:
        return self.pos >= len(self.input)

    def upcoming(self, n: int = 1) -> Optional[Input]:
        """The next n characters (fewer near the end), or None at end of input."""
        return self.input[self.pos:self.pos + n] or None


@dataclass
class ParseError:
    """A parse failure: where it happened, what was expected, what was found."""
    pos: int
    expected: List[str] = field(default_factory=list)
    actual: Optional[Input] = None  # None means end of input

    def expectation(self) -> str:
        if not self.expected:
            return "nothing"
        if len(self.expected) == 1:
            return self.expected[0]
        return "one of " + ", ".join(self.expected)

    def source_pos(self, input: Input, name: str = "") -> SourcePos:
        return SourcePos.from_offset(input, self.pos, name)

    @staticmethod
    def merge(e1: Optional['ParseError'], e2: Optional['ParseError']) -> Optional['ParseError']:
        """Keep the furthest error; at the same offset, union the expectations."""
        if e1 is None:
            return e2
        if e2 is None:
            return e1
        if e1.pos > e2.pos:
            return e1
        if e2.pos > e1.pos:
            return e2
        expected = list(e1.expected)
        expected.extend(e for e in e2.expected if e not in expected)
        return ParseError(e1.pos, expected, e1.actual)

    def __str__(self) -> str:
        found = "end of input" if self.actual is None else repr(self.actual)
        return f"Parse error at offset {self.pos}: expected {self.expectation()} but saw {found}"


@dataclass
class Ok(Generic[T]):
    value: T
    state: State
    # Furthest failure swallowed on the way here, reported if parsing fails later.
    error: Optional[ParseError] = None


@dataclass
class Error:
    # The state the failing parser started from; failures never move the cursor.
    state: State
    error: ParseError


ParseResult = Union[Ok[T], Error]


class Parsec(Generic[T]):
    """A parser: a function from a State to a ParseResult."""
    def __init__(self, parse_fn: Callable[[State], ParseResult[T]]):
        self.parse_fn = parse_fn

    def __call__(self, state: State) -> ParseResult[T]:
        return self.parse_fn(state)

    # Monadic bind (>>=)
    def bind(self, f: Callable[[T], 'Parsec[U]']) -> 'Parsec[U]':
        def parse(state: State) -> ParseResult[U]:
            res = self(state)
            if isinstance(res, Error):
                return res

            next_res = f(res.value)(res.state)
            error = ParseError.merge(res.error, next_res.error)
            if isinstance(next_res, Error):
                # Roll back past the part that did succeed.
                return Error(state, error)
            return Ok(next_res.value, next_res.state, error)
        return Parsec(parse)

    # Monadic bind also available as >>
    def __rshift__(self, f: Callable[[T], 'Parsec[U]']) -> 'Parsec[U]':
        return self.bind(f)

    # Functor map (<$>)
    def map(self, f: Callable[[T], U]) -> 'Parsec[U]':
        def parse(state: State) -> ParseResult[U]:
            res = self(state)
            if isinstance(res, Error):
                return res
            return Ok(f(res.value), res.state, res.error)
        return Parsec(parse)

    # Ordered choice (<|>); see Combinators.either
    def __or__(self, other: 'Parsec[T]') -> 'Parsec[T]':
        def parse(state: State) -> ParseResult[T]:
            res = self(state)
            if isinstance(res, Ok):
                return res

            # self has already rolled back, so other starts from the same place
            other_res = other(state)
            error = ParseError.merge(res.error, other_res.error)
            if isinstance(other_res, Error):
                return Error(state, error)
            return Ok(other_res.value, other_res.state, error)
        return Parsec(parse)

    # Sequence (&)
    # self: Parsec[T], other: Parsec[U] -> result: Parsec[Tuple[T, U]]
    def __and__(self, other: 'Parsec[U]') -> 'Parsec[Tuple[T, U]]':
        return self.bind(lambda x: other.map(lambda y: (x, y)))

    # Sequence (*>)
    # self: Parsec[T], other: Parsec[U] -> result: Parsec[U]
    # Parenthesize when combining more than two: `a > b > c` is a chained comparison.
    def __gt__(self, other: 'Parsec[U]') -> 'Parsec[U]':
        return self.bind(lambda _: other)

    # Sequence (<*)
    # self: Parsec[T], other: Parsec[U] -> result: Parsec[T]
    def __lt__(self, other: 'Parsec[U]') -> 'Parsec[T]':
        return self.bind(lambda x: other.map(lambda _: x))

    # Label (<?>)
    def label(self, msg: str) -> 'Parsec[T]':
        def parse(state: State) -> ParseResult[T]:
            res = self(state)
            if isinstance(res, Error) and res.error.pos == state.pos:
                # Failed without getting anywhere: describe it as a whole
                return Error(state, ParseError(state.pos, [msg], res.error.actual))
            return res
        return Parsec(parse)


class _Absent:
    """Marker returned by `optional` when its parser did not match."""
    _instance = None

    def __new__(cls) -> '_Absent':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Any = _Absent()
