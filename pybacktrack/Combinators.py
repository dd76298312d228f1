import logging
from typing import List, Any, Union
from .Parsec import Parsec, State, ParseError, ParseResult, Ok, Error, ABSENT, T
from .Prim import pure, fail, peek

logger = logging.getLogger("pybacktrack.trace")


# 1. optional: Tries a parser, returning ABSENT on failure
def optional(p: Parsec[T]) -> Parsec[Union[T, Any]]:
    """
    Tries parser p; returns its value if it succeeds, else ABSENT with the cursor
    left where it was.
    """
    def parse(state: State) -> ParseResult[Union[T, Any]]:
        res = p(state)
        if isinstance(res, Error):
            return Ok(ABSENT, state, res.error)
        return res
    return Parsec(parse)


# 2. zeroOrMore: Applies a parser until it fails
def zero_or_more(p: Parsec[T]) -> Parsec[List[T]]:
    """
    Applies p repeatedly, collecting results in order, until it fails.
    Never fails; the cursor ends just before the failed attempt.
    """
    def parse(state: State) -> ParseResult[List[T]]:
        results: List[T] = []
        current = state
        last_error = None
        while True:
            res = p(current)
            last_error = ParseError.merge(last_error, res.error)
            if isinstance(res, Error):
                return Ok(results, current, last_error)
            results.append(res.value)
            if res.state.pos == current.pos:
                # Matched nothing; another round would match nothing forever.
                return Ok(results, current, last_error)
            current = res.state
    return Parsec(parse)


# 3. atLeastOne: Applies a parser one or more times
def at_least_one(p: Parsec[T]) -> Parsec[List[T]]:
    """
    Applies parser p one or more times, returning a list of results.
    """
    return p.bind(lambda x: zero_or_more(p).map(lambda xs: [x] + xs))


# 4. either: Ordered choice between two parsers
def either(p1: Parsec[T], p2: Parsec[T]) -> Parsec[T]:
    """
    Tries p1; only if it fails, tries p2 from the same position.
    p1 wins whenever it succeeds, so put the more specific parser first.
    """
    return p1 | p2


# 5. oneOf: Tries parsers in order until one succeeds
def one_of(parsers: List[Parsec[T]]) -> Parsec[T]:
    """
    Applies a list of parsers in order, each from the same starting position.
    Returns the value of the first that succeeds, or fails with every expectation.
    """
    if not parsers:
        return fail("no alternatives")

    def parse(state: State) -> ParseResult[T]:
        error = None
        for p in parsers:
            res = p(state)
            error = ParseError.merge(error, res.error)
            if isinstance(res, Ok):
                return Ok(res.value, res.state, error)
        return Error(state, error)
    return Parsec(parse)


# 6. sepBy: Parses zero or more occurrences separated by a separator
def sep_by(separator: Parsec[Any], p: Parsec[T]) -> Parsec[List[T]]:
    """
    Parses zero or more occurrences of p separated by separator, returning p's results.
    A separator only counts when the p after it succeeds too.
    """
    rest_p = zero_or_more(separator > p)

    def parse(state: State) -> ParseResult[List[T]]:
        first = p(state)
        if isinstance(first, Error):
            return Ok([], state, first.error)
        rest = rest_p(first.state)
        return Ok([first.value] + rest.value, rest.state, ParseError.merge(first.error, rest.error))
    return Parsec(parse)


# 7. count: Parses n occurrences of a parser
def count(n: int, p: Parsec[T]) -> Parsec[List[T]]:
    """
    Applies p exactly n times, returning the list of results.
    """
    if n <= 0:
        return pure([])
    return p.bind(lambda x: count(n - 1, p).map(lambda xs: [x] + xs))


# 8. between: Parses an opening parser, a main parser, and a closing parser
def between(open: Parsec[Any], close: Parsec[Any], inner: Parsec[T]) -> Parsec[T]:
    """
    Parses 'open', then 'inner', then 'close', returning the result of 'inner'.
    Any failure leaves the cursor where it was before 'open'.
    """
    return open.bind(lambda _: inner.bind(lambda x: close.map(lambda _: x)))


# 9. eof: Succeeds only at the end of input
def eof() -> Parsec[None]:
    """
    Succeeds only if no input remains.
    """
    return peek().bind(lambda c: pure(None) if c is None else fail("end of input", c))


# 10. parserTrace: Debugging parser that logs the upcoming input
def parser_trace(label_str: str) -> Parsec[None]:
    def parse(state: State) -> ParseResult[None]:
        upcoming = state.input[state.pos:state.pos + 30]
        more = '...' if state.remaining() > 30 else ''
        logger.debug("%s: %r%s at offset %d", label_str, upcoming, more, state.pos)
        return Ok(None, state)
    return Parsec(parse)


def trace_outcome(label_str: str, state: State, res: ParseResult[Any]) -> None:
    """Log how a parse that started at `state` ended."""
    if isinstance(res, Error):
        logger.debug("%s backtracked to offset %d (%s)", label_str, state.pos, res.error)
    else:
        logger.debug("%s matched up to offset %d", label_str, res.state.pos)


# 11. parserTraced: Debugging parser that traces execution and backtracking
def parser_traced(label_str: str, p: Parsec[T]) -> Parsec[T]:
    enter = parser_trace(label_str)

    def parse(state: State) -> ParseResult[T]:
        enter(state)
        res = p(state)
        trace_outcome(label_str, state, res)
        return res
    return Parsec(parse)
