from dataclasses import dataclass, replace


@dataclass(frozen=True)
class JsonDef:
    """
    Options for the JSON grammar.
    """
    whitespace: str = " \n"          # characters skipped between tokens
    exact_fractions: bool = False    # keep leading zeros of the fraction digits
    decode_escapes: bool = False     # decode backslash escapes inside strings
    require_eof: bool = False        # reject anything after the top-level value
    trace: bool = False              # log every rule through parser_traced


# -----------------------------------------------------------
# Default definition
# -----------------------------------------------------------

# Space and newline are the only insignificant whitespace. Strings are
# returned as written and fractions are assembled from their integer value,
# so "1.05" reads as 1.5. Text after the first complete value is ignored.
json_def = JsonDef()

# -----------------------------------------------------------
# Strict definition
# -----------------------------------------------------------

# Closer to RFC 8259: tab and carriage return are whitespace too, escapes are
# decoded, fractions keep their leading zeros and the whole input must be
# one value.
strict_def = replace(
    json_def,
    whitespace=" \t\n\r",
    exact_fractions=True,
    decode_escapes=True,
    require_eof=True,
)
