"""
Column type inference.

Maps each flattened value to a destination column type and the normalized
value that will be bound in the insert statement.
"""

import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from dateutil import parser as dateparser

from autoload.core.models import Column, ColumnType, JsonNumber, LoaderConfig, ScalarKind, TypedColumn
from autoload.observability.logger import LogSinks

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
UINT64_MAX = 2 ** 64 - 1

# A date parse is only attempted when the first of these appears after position 0
DATE_DELIMITERS = re.compile(r"[-/ :]")

# Year, month and day must all come from the string itself
FIRST_DEFAULT = datetime(1970, 1, 1)
SECOND_DEFAULT = datetime(1971, 2, 2)

INTEGER_LITERAL = re.compile(r"[+-]?\d+")
FLOAT_LITERAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class NumberParseError(ValueError):
    """Raised internally when a number literal does not parse at a given tier."""


def classify(value: Any) -> ScalarKind:
    """
    Classify a runtime value.

    Args:
        value: Flattened leaf value

    Returns:
        ScalarKind for the value
    """
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return ScalarKind.BOOL
    if isinstance(value, (JsonNumber, Decimal, int, float)):
        return ScalarKind.NUMBER
    if isinstance(value, str):
        return ScalarKind.STRING
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return ScalarKind.DATETIME
    if isinstance(value, date):
        return ScalarKind.DATE
    return ScalarKind.UNSUPPORTED


def parse_integer(literal: str) -> int:
    """Parse a signed 64-bit integer literal."""
    if not INTEGER_LITERAL.fullmatch(literal):
        raise NumberParseError(f"not an integer literal: {literal!r}")
    value = int(literal)
    if value < INT64_MIN or value > INT64_MAX:
        raise NumberParseError(f"integer out of 64-bit range: {literal}")
    return value


def parse_float(literal: str) -> float:
    """Parse a finite floating-point literal."""
    if not FLOAT_LITERAL.fullmatch(literal):
        raise NumberParseError(f"not a float literal: {literal!r}")
    value = float(literal)
    if not math.isfinite(value):
        raise NumberParseError(f"float out of range: {literal}")
    return value


def to_datetime(text: str) -> tuple[bool, bool, datetime | None]:
    """
    Best-effort calendar parse of a string.

    Only complete dates count: year, month and day must all appear in the
    text, so no part of the result ever comes from the clock.

    Args:
        text: Candidate date or date-time string

    Returns:
        Tuple of (is_date, has_time, parsed). has_time is True when any of
        hour, minute, second or microsecond is non-zero.
    """
    try:
        parsed = dateparser.parse(text, default=FIRST_DEFAULT)
        # A field missing from text differs between the two defaults
        check = dateparser.parse(text, default=SECOND_DEFAULT)
    except (ValueError, OverflowError):
        return False, False, None

    if parsed.date() != check.date():
        return False, False, None

    has_time = bool(parsed.hour or parsed.minute or parsed.second or parsed.microsecond)
    return True, has_time, parsed


def looks_like_date(text: str) -> bool:
    """True when the first date delimiter in text sits after its first character."""
    match = DATE_DELIMITERS.search(text)
    return match is not None and match.start() > 0


class TypeMapper:
    """
    Infers destination column types for flattened values.

    Precedence: booleans, numbers (integer, then float, then string),
    strings (with opportunistic date detection), native dates. Bookkeeping
    columns named in the LoaderConfig have fixed types. Any other value is
    dropped and reported on the ops log sink.
    """

    def __init__(self, config: LoaderConfig | None = None, logs: LogSinks | None = None):
        """
        Initialize type mapper.

        Args:
            config: Loader settings naming the bookkeeping columns
            logs: Log sinks (defaults to the "autoload" loggers)
        """
        self.config = config or LoaderConfig()
        self.logs = logs or LogSinks.default()

    def map_columns(self, columns: list[Column]) -> tuple[list[TypedColumn], list[str]]:
        """
        Map a list of flattened columns.

        Args:
            columns: Output of flatten()

        Returns:
            Tuple of (typed columns in input order, names of dropped fields)
        """
        typed = []
        dropped = []

        for column in columns:
            mapped = self.map_column(column)
            if mapped is None:
                dropped.append(column.name)
            else:
                typed.append(mapped)

        if dropped:
            self.logs.ops.warning(
                f"Dropped {len(dropped)} field(s) with unsupported value types: {', '.join(dropped)}"
            )

        return typed, dropped

    def map_column(self, column: Column) -> TypedColumn | None:
        """
        Map a single column.

        Args:
            column: Flattened column

        Returns:
            TypedColumn, or None when the value type is unsupported
        """
        mapped = self._map_reserved(column)
        if mapped is None:
            mapped = self.map_value(column.value)

        if mapped is None:
            self.logs.debug.debug(
                f"Column {column.name}: unsupported value type {type(column.value).__name__}"
            )
            return None

        column_type, value = mapped
        self.logs.debug.debug(f"Column {column.name}: {column_type.value}")
        return TypedColumn(name=column.name, type=column_type, value=value)

    def map_value(self, value: Any) -> tuple[ColumnType, Any] | None:
        """
        Infer the column type of a value.

        Args:
            value: Flattened leaf value

        Returns:
            Tuple of (column type, normalized value), or None if unsupported
        """
        kind = classify(value)

        if kind is ScalarKind.BOOL:
            return ColumnType.UINT8, 1 if value else 0
        elif kind is ScalarKind.NUMBER:
            return self._map_number(value)
        elif kind is ScalarKind.STRING:
            return self._map_string(value)
        elif kind is ScalarKind.DATETIME:
            return ColumnType.DATETIME, value
        elif kind is ScalarKind.DATE:
            return ColumnType.DATE, value
        elif kind is ScalarKind.UNSUPPORTED:
            return None
        raise AssertionError(f"Unhandled scalar kind: {kind}")

    def _map_number(self, value: Any) -> tuple[ColumnType, Any]:
        """
        Three-tier numeric inference: integer, then float, then string.
        """
        if isinstance(value, float):
            literal = repr(value)
        else:
            literal = str(value)

        try:
            return ColumnType.INT64, parse_integer(literal)
        except NumberParseError as e:
            self.logs.debug.debug(f"Integer parse failed: {e}")

        try:
            return ColumnType.FLOAT64, parse_float(literal)
        except NumberParseError as e:
            self.logs.debug.debug(f"Float parse failed: {e}")

        return ColumnType.STRING, literal

    def _map_string(self, value: str) -> tuple[ColumnType, Any]:
        if looks_like_date(value):
            is_date, has_time, parsed = to_datetime(value)
            if is_date:
                if has_time:
                    return ColumnType.DATETIME, parsed
                return ColumnType.DATE, parsed.date()
        return ColumnType.STRING, value

    def _map_reserved(self, column: Column) -> tuple[ColumnType, Any] | None:
        """
        Fixed types for the bookkeeping columns.

        Returns None when the column is not a bookkeeping column or its value
        does not convert, so the general rules apply instead.
        """
        config = self.config
        value = column.value

        if column.name == config.id_field:
            try:
                return ColumnType.INT64, parse_integer(str(value))
            except NumberParseError:
                return None

        if column.name == config.hash_field:
            if isinstance(value, bool):
                return None
            try:
                content_hash = int(str(value))
            except ValueError:
                return None
            if 0 <= content_hash <= UINT64_MAX:
                return ColumnType.UINT64, content_hash
            return None

        if column.name == config.date_field:
            if isinstance(value, datetime):
                return ColumnType.DATE, value.date()
            if isinstance(value, date):
                return ColumnType.DATE, value
            if isinstance(value, str):
                is_date, _, parsed = to_datetime(value)
                if is_date:
                    return ColumnType.DATE, parsed.date()
            return None

        if column.name == config.timestamp_field:
            if isinstance(value, datetime):
                return ColumnType.DATETIME, value
            if isinstance(value, str):
                is_date, _, parsed = to_datetime(value)
                if is_date:
                    return ColumnType.DATETIME, parsed
            return None

        return None
