"""
JsonNumber keeps the literal text of a decoded JSON number.
"""


class JsonNumber(str):
    """
    Literal text of a JSON number.

    Decoding numbers into this type instead of int/float keeps the original
    token, so "42" and "42.0" can still be told apart when inferring column
    types.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"JsonNumber({str.__repr__(self)})"
