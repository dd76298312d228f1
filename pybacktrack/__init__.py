# Core
from .Parsec import Parsec, State, ParseError, SourcePos, Ok, Error, ABSENT
from .Prim import run_parser, pure, fail, lazy, take, string, take_while, peek

# Characters
from .Char import satisfy, char, any_of, none_of, digit, hex_digit, spaces

# Combinators
from .Combinators import (
    optional, zero_or_more, at_least_one, either, one_of,
    sep_by, count, between, eof,
    parser_trace, parser_traced, trace_outcome
)

# JSON Grammar
from .Language import JsonDef, json_def, strict_def
from .Json import JsonParser, JsonParseError, IntegerLiteral, assemble_number, parse, loads
