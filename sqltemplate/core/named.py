"""Named placeholder handling for DB-API execution.

SQL templates use ``:name`` placeholders for named binding and ``?`` for
positional binding. DB-API drivers only receive positional markers, so named
placeholders are replaced by driver markers and their values are collected in
order from a :class:`~sqltemplate.protocols.ParameterSource`.

Quoted strings, comments and ``::`` casts are never treated as placeholders.
"""

import re
import threading
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Final

from sqltemplate.exceptions import MissingParameterError, ParameterError, ParameterStyleMismatchError

if TYPE_CHECKING:
    from sqltemplate.protocols import ParameterSource

__all__ = (
    "NamedParameter",
    "ParsedSql",
    "convert_positional_placeholders",
    "expand_named_parameters",
    "parse_sql_statement",
)

_PARAMETER_REGEX = re.compile(
    r"""
    (?P<dquote>"(?:[^"\\]|\\.)*") |
    (?P<squote>'(?:[^'\\]|\\.)*') |
    (?P<dollar_quoted_string>\$(?P<dollar_quote_tag>\w*)\$[\s\S]*?\$(?P=dollar_quote_tag)\$) |
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*(?:[^*]|\*(?!/))*\*/) |
    (?P<pg_q_operator>\?\?|\?\||\?&) |
    (?P<pg_cast>::(?P<cast_type>\w+)) |
    (?P<positional_colon>:\d+) |
    (?P<named_colon>:(?P<colon_name>[A-Za-z_]\w*)) |
    (?P<qmark>\?)
    """,
    re.VERBOSE | re.MULTILINE | re.DOTALL,
)

_SKIP_GROUPS: Final = (
    "dquote",
    "squote",
    "dollar_quoted_string",
    "line_comment",
    "block_comment",
    "pg_q_operator",
    "pg_cast",
    "positional_colon",
)

_CACHE_MAX_SIZE: Final = 512
_parse_cache: "OrderedDict[str, ParsedSql]" = OrderedDict()
_cache_lock = threading.Lock()


class NamedParameter:
    """One ``:name`` placeholder occurrence."""

    __slots__ = ("end", "name", "start")

    def __init__(self, name: str, start: int, end: int) -> None:
        self.name = name
        self.start = start
        self.end = end

    def __repr__(self) -> str:
        return f"NamedParameter({self.name!r}, start={self.start}, end={self.end})"


class ParsedSql:
    """Placeholder positions of one SQL string."""

    __slots__ = ("named_parameters", "positional_markers", "sql")

    def __init__(self, sql: str, named_parameters: "list[NamedParameter]", positional_markers: "list[int]") -> None:
        self.sql = sql
        self.named_parameters = named_parameters
        self.positional_markers = positional_markers

    @property
    def parameter_names(self) -> "list[str]":
        """Distinct parameter names in order of first appearance."""
        return list(dict.fromkeys(p.name for p in self.named_parameters))

    @property
    def has_named_parameters(self) -> bool:
        return bool(self.named_parameters)

    @property
    def has_positional_parameters(self) -> bool:
        return bool(self.positional_markers)


def parse_sql_statement(sql: str) -> ParsedSql:
    """Find the named and positional placeholders in ``sql``.

    Results are kept in a bounded LRU cache keyed by the SQL text.

    Args:
        sql: SQL text.

    Returns:
        The parsed placeholder positions.
    """
    with _cache_lock:
        cached = _parse_cache.get(sql)
        if cached is not None:
            _parse_cache.move_to_end(sql)
            return cached

    named: list[NamedParameter] = []
    positional: list[int] = []
    if ":" in sql or "?" in sql:
        for match in _PARAMETER_REGEX.finditer(sql):
            if any(match.group(g) for g in _SKIP_GROUPS):
                continue
            if match.group("named_colon"):
                named.append(NamedParameter(match.group("colon_name"), match.start(), match.end()))
            elif match.group("qmark"):
                positional.append(match.start())

    parsed = ParsedSql(sql, named, positional)
    with _cache_lock:
        _parse_cache[sql] = parsed
        if len(_parse_cache) > _CACHE_MAX_SIZE:
            _parse_cache.popitem(last=False)
    return parsed


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def expand_named_parameters(sql: str, source: "ParameterSource", placeholder: str = "?") -> "tuple[str, list[Any]]":
    """Replace ``:name`` placeholders with driver markers and collect their values.

    Collection values expand to one marker per element; tuples inside a
    collection expand to parenthesized groups, e.g. ``IN ((?, ?), (?, ?))``.

    Args:
        sql: SQL text with ``:name`` placeholders.
        source: Source of the parameter values.
        placeholder: Driver marker, ``?`` or ``%s``.

    Raises:
        ParameterStyleMismatchError: If named and ``?`` placeholders are mixed.
        MissingParameterError: If the source has no value for a placeholder.
        ParameterError: If a collection value is empty.

    Returns:
        The driver SQL and the values in marker order.
    """
    parsed = parse_sql_statement(sql)
    if not parsed.has_named_parameters:
        return sql, []
    if parsed.has_positional_parameters:
        raise ParameterStyleMismatchError(sql=sql)

    pieces: list[str] = []
    values: list[Any] = []
    last = 0
    for parameter in parsed.named_parameters:
        if not source.has_value(parameter.name):
            msg = f"No value supplied for the SQL parameter {parameter.name!r}"
            raise MissingParameterError(msg, sql)
        value = source.get_value(parameter.name)
        pieces.append(sql[last : parameter.start])
        if _is_collection(value):
            if not value:
                msg = f"Empty collection supplied for the SQL parameter {parameter.name!r}"
                raise ParameterError(msg, sql)
            markers: list[str] = []
            for item in value:
                if isinstance(item, tuple):
                    markers.append("(" + ", ".join(placeholder for _ in item) + ")")
                    values.extend(item)
                else:
                    markers.append(placeholder)
                    values.append(item)
            pieces.append(", ".join(markers))
        else:
            pieces.append(placeholder)
            values.append(value)
        last = parameter.end
    pieces.append(sql[last:])
    return "".join(pieces), values


def convert_positional_placeholders(sql: str, placeholder: str) -> str:
    """Rewrite ``?`` markers for drivers using another positional marker.

    Args:
        sql: SQL text with ``?`` placeholders.
        placeholder: Driver marker.

    Returns:
        The rewritten SQL.
    """
    if placeholder == "?":
        return sql
    parsed = parse_sql_statement(sql)
    if not parsed.positional_markers:
        return sql
    pieces: list[str] = []
    last = 0
    for position in parsed.positional_markers:
        pieces.append(sql[last:position])
        pieces.append(placeholder)
        last = position + 1
    pieces.append(sql[last:])
    return "".join(pieces)
