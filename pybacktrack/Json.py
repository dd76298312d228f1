import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .Parsec import Parsec, State, ParseError, ParseResult, Ok, Error, ABSENT, Input
from .Prim import string, take_while, peek, pure, fail, lazy, run_parser
from .Char import char, any_of, digit, hex_digit, spaces
from .Combinators import (
    optional, zero_or_more, at_least_one, either, one_of, count,
    between, eof, parser_traced, trace_outcome
)
from .Language import JsonDef, json_def

JsonValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]

_ESCAPES = {
    '"': '"', '\\': '\\', '/': '/',
    'b': '\b', 'f': '\f', 'n': '\n', 'r': '\r', 't': '\t',
}


@dataclass(frozen=True)
class IntegerLiteral:
    """An optionally signed run of digits, as written in the source."""
    sign: str    # "-", "+" or ""
    digits: str

    @property
    def value(self) -> int:
        n = 0
        for d in self.digits:
            n = n * 10 + (ord(d) - ord("0"))
        return -n if self.sign == "-" else n

    def printed_length(self) -> int:
        """Length of str(self.value): leading zeros gone, minus sign counted."""
        significant = self.digits.lstrip("0") or "0"
        negative = self.sign == "-" and significant != "0"
        return len(significant) + negative


def _to_float(n: int) -> float:
    try:
        return float(n)
    except OverflowError:
        return math.copysign(math.inf, n)


def _pow10(e: int) -> float:
    try:
        return 10 ** float(e)
    except OverflowError:
        return math.inf if e > 0 else 0.0


def assemble_number(whole: IntegerLiteral, fraction: Any = ABSENT, exponent: Any = ABSENT,
                    exact_fractions: bool = False) -> Union[int, float]:
    """
    Combine the parsed parts of a number literal.

    Without a fraction or an exponent the result is the exact integer. Otherwise
    the integer part is converted to float and the fraction's integer value D is
    added as D / 10 ** len(str(D)). That length ignores leading zeros, so "1.05"
    gives 1.5, and D is added to a negative integer part as a positive amount, so
    "-1.5" gives -0.5. With `exact_fractions` the fraction is scaled by the
    number of digits as written and the sign applies to the whole magnitude.
    Finally the value is multiplied by 10 ** float(exponent).
    """
    if fraction is ABSENT and exponent is ABSENT:
        return whole.value

    if exact_fractions:
        result = _to_float(abs(whole.value))
        if fraction is not ABSENT:
            result += fraction.value / 10 ** len(fraction.digits)
        if whole.sign == "-":
            result = -result
    else:
        result = _to_float(whole.value)
        if fraction is not ABSENT:
            result += fraction.value / 10 ** fraction.printed_length()

    if exponent is not ABSENT:
        result *= _pow10(exponent.value)
    return result


def _join_surrogates(s: str) -> str:
    # A \uD83D\uDE00 pair arrives as two surrogates; fold each pair into one character
    return s.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


class JsonParser:
    """
    The JSON grammar, built once from a JsonDef and reusable across inputs.

    Every rule is an attribute holding a Parsec, so callers can run a single
    rule (say, `number`) on its own. `document` is the entry point.
    """
    def __init__(self, lang: JsonDef = json_def):
        self.lang = lang
        value = lazy(lambda: self.value)

        def rule(name: str, p: Parsec[Any]) -> Parsec[Any]:
            return parser_traced(name, p) if lang.trace else p

        # --- Whitespace & Punctuation ---
        self.white_space = spaces(lang.whitespace)
        self.comma = (self.white_space > string(",")) < self.white_space
        self.colon = (self.white_space > string(":")) < self.white_space

        # --- Literals ---
        self.null = rule("null", string("null").map(lambda _: None))
        self.boolean = rule("boolean", either(string("true"), string("false")).map(lambda b: b == "true"))

        # --- Strings ---
        self.quoted_string = rule("quoted_string", between(string('"'), string('"'), self._string_body()))

        # --- Numbers ---
        self.sign = either(string("-"), string("+"))
        self.integer = optional(self.sign).bind(lambda s:
                       at_least_one(digit()).map(lambda ds:
                       IntegerLiteral(s or "", "".join(ds))))

        fraction = self._introduced(".", self.integer)
        exponent = self._introduced("eE", self.integer)
        self.number = rule("number", self.integer.bind(lambda whole:
                      fraction.bind(lambda frac:
                      exponent.map(lambda exp:
                      assemble_number(whole, frac, exp, lang.exact_fractions)))))

        # --- Containers ---
        self.key_value_pair = self.quoted_string.bind(lambda key:
                              self.colon.bind(lambda _:
                              value.map(lambda val: (key, val))))
        self.object = self._opened_by("{")
        self.array = self._opened_by("[")

        # --- Values ---
        self._scalar = one_of([self.quoted_string, self.boolean, self.null, self.number])
        self.value = rule("value", Parsec(self._value))

        if lang.require_eof:
            self.document = (self.value < self.white_space) < eof()
        else:
            self.document = self.value

    def _opened_by(self, opener: str) -> Parsec[Any]:
        # Objects and arrays are parsed inside _value; this only checks the opener.
        def parse(state: State) -> ParseResult[Any]:
            if state.upcoming() != opener:
                return Error(state, ParseError(state.pos, [repr(opener)], state.upcoming()))
            return self._value(state)
        return Parsec(parse)

    def _value(self, state: State) -> ParseResult[JsonValue]:
        """
        Skip whitespace, then parse one value, trying object, array, string,
        boolean, null and number in that order.

        Only an object can start with "{" and only an array with "[", so those
        two are picked by their opening character and parsed in place. Members
        recurse straight back into this method, one Python frame per level of
        nesting. Where the interpreter's stack runs out, the member fails with
        "shallower nesting" instead.
        """
        start = state
        state = self.white_space(state).state
        opener = state.upcoming()
        if opener != "{" and opener != "[":
            res = self._scalar(state)
            error = ParseError.merge(ParseError(state.pos, ["'{'", "'['"], opener), res.error)
            if isinstance(res, Error):
                return Error(start, error)
            return Ok(res.value, res.state, error)

        is_object = opener == "{"
        name, close = ("object", "}") if is_object else ("array", "]")
        # An array is only reached after the object alternative has failed here
        error = None if is_object else ParseError(state.pos, ["'{'"], opener)
        items: List[Any] = []
        cursor = self.white_space(state.advance(1)).state
        while True:
            at = cursor
            if items:
                sep = self.comma(at)
                error = ParseError.merge(error, sep.error)
                if isinstance(sep, Error):
                    break
                at = sep.state
            if is_object:
                key = self.quoted_string(at)
                error = ParseError.merge(error, key.error)
                if isinstance(key, Error):
                    break
                sep = self.colon(key.state)
                error = ParseError.merge(error, sep.error)
                if isinstance(sep, Error):
                    break
                at = sep.state
            try:
                member = self._value(at)
            except RecursionError:
                member = Error(at, ParseError(at.pos, ["shallower nesting"], at.upcoming()))
            error = ParseError.merge(error, member.error)
            if isinstance(member, Error):
                break
            items.append((key.value, member.value) if is_object else member.value)
            cursor = member.state

        cursor = self.white_space(cursor).state
        if cursor.upcoming() == close:
            cursor = cursor.advance(1)
            if not is_object:
                cursor = self.white_space(cursor).state
            res = Ok(dict(items) if is_object else items, cursor, error)
        else:
            error = ParseError.merge(error, ParseError(cursor.pos, [repr(close)], cursor.upcoming()))
            res = Error(start, error)

        if self.lang.trace:
            trace_outcome(name, state, res)
        return res

    def _introduced(self, introducers: str, p: Parsec[Any]) -> Parsec[Any]:
        # Once the introducer is seen, p is required; otherwise the part is ABSENT.
        def dispatch(c: Optional[Input]) -> Parsec[Any]:
            if c is not None and c in introducers:
                return any_of(introducers) > p
            return pure(ABSENT)
        return peek().bind(dispatch)

    def _string_body(self) -> Parsec[str]:
        if not self.lang.decode_escapes:
            return take_while(lambda c: c != '"')

        unicode_escape = char('u') > count(4, hex_digit()).map(lambda ds: chr(int("".join(ds), 16)))
        escape = char('\\') > either(
            any_of("".join(_ESCAPES)).map(lambda c: _ESCAPES[c]),
            unicode_escape,
        )
        chunk = take_while(lambda c: c != '"' and c != '\\').bind(
            lambda s: pure(s) if s else fail("string character"))
        return zero_or_more(either(escape, chunk)).map(lambda parts: _join_surrogates("".join(parts)))

    def run(self, text: str) -> Tuple[Optional[JsonValue], Optional[ParseError]]:
        """Parse a whole document. A None error means success."""
        try:
            return run_parser(self.document, text)
        except RecursionError:
            # Ran out of stack before any container could report it
            return None, ParseError(0, ["shallower nesting"], text[:1] or None)


class JsonParseError(ValueError):
    """Raised by `loads` when the document does not parse."""
    def __init__(self, error: ParseError):
        super().__init__(str(error))
        self.error = error
        self.pos = error.pos


_parsers: Dict[JsonDef, JsonParser] = {}


def _parser_for(lang: JsonDef) -> JsonParser:
    parser = _parsers.get(lang)
    if parser is None:
        parser = _parsers[lang] = JsonParser(lang)
    return parser


def parse(text: Union[str, bytes], lang: JsonDef = json_def) -> Tuple[Optional[JsonValue], Optional[ParseError]]:
    """
    Parse a JSON document into native values, returning (value, error).
    Bytes are decoded as UTF-8 first; bytes that do not decode fail at the
    offending byte offset.
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("utf-8")
        except UnicodeDecodeError as e:
            return None, ParseError(e.start, ["UTF-8 text"], e.object[e.start:e.start + 1])
    return _parser_for(lang).run(text)


def loads(text: Union[str, bytes], lang: JsonDef = json_def) -> JsonValue:
    """Like `parse`, but returns the value and raises JsonParseError on failure."""
    value, err = parse(text, lang)
    if err is not None:
        raise JsonParseError(err)
    return value
