"""Shared database types: query results, the connection contract and SQL helpers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple


LOOPBACK_ADDRESS = "127.0.0.1"


def resolve_host(hostname: Optional[str]) -> Optional[str]:
    """Rewrite ``localhost`` to the loopback IP so TCP is used, not a socket."""
    if hostname == "localhost":
        return LOOPBACK_ADDRESS
    return hostname


class DatabaseBackend(str, Enum):
    """Which strategy backs an open gateway."""
    NATIVE = "native"
    FALLBACK = "fallback"


class ParameterType(str, Enum):
    """How a positional parameter is bound."""
    NULL = "null"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one executed statement.

    ``num_rows`` always equals ``len(rows)``. Statements without a result
    set produce an empty result; affected rows live on the connection.
    """
    row: Dict[str, Any] = field(default_factory=dict)
    rows: Tuple[Dict[str, Any], ...] = ()
    num_rows: int = 0

    @classmethod
    def from_rows(cls, rows: Iterable[Dict[str, Any]]) -> "QueryResult":
        rows = tuple(rows)
        return cls(row=rows[0] if rows else {}, rows=rows, num_rows=len(rows))

    @classmethod
    def empty(cls) -> "QueryResult":
        return cls()

    def scalar(self, column: str, default: Any = None) -> Any:
        """Value of ``column`` in the first row."""
        return self.row.get(column, default)


class ConnectionHandle(Protocol):
    """Capabilities every backing strategy provides."""

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        ...

    def escape(self, value: str) -> str:
        ...

    def last_insert_id(self) -> int:
        ...

    def affected_rows(self) -> int:
        ...

    def close(self) -> None:
        ...


def classify_parameter(value: Any) -> Tuple[ParameterType, Any]:
    """Classify a parameter and coerce it to the value that gets bound.

    Booleans bind as integers 1/0. Anything that is not None, a number or
    bytes is bound as its string form.
    """
    if value is None:
        return ParameterType.NULL, None
    if isinstance(value, bool):
        return ParameterType.INTEGER, int(value)
    if isinstance(value, int):
        return ParameterType.INTEGER, value
    if isinstance(value, float):
        return ParameterType.FLOAT, value
    if isinstance(value, (bytes, bytearray)):
        return ParameterType.STRING, bytes(value)
    return ParameterType.STRING, str(value)


def bind_parameters(params: Sequence[Any]) -> List[Any]:
    """Coerce every parameter, preserving order."""
    return [classify_parameter(value)[1] for value in params]


def _comment_end(sql: str, i: int) -> Optional[int]:
    """Index just past the comment starting at ``sql[i]``, or None if none starts there."""
    if sql.startswith("/*", i):
        end = sql.find("*/", i + 2)
        return len(sql) if end == -1 else end + 2

    # "--" only opens a comment when followed by whitespace or end of input
    is_dash_comment = sql.startswith("--", i) and (i + 2 == len(sql) or sql[i + 2].isspace())
    if sql[i] == "#" or is_dash_comment:
        end = sql.find("\n", i)
        return len(sql) if end == -1 else end

    return None


def split_placeholders(sql: str) -> List[str]:
    """Split ``sql`` around positional ``?`` placeholders.

    Question marks inside quoted strings, backtick identifiers or
    comments (``--``, ``#``, ``/* */``) are not placeholders, and quotes
    inside comments do not open strings. The result always has one more
    segment than there are placeholders.
    """
    segments: List[str] = []
    current: List[str] = []
    quote = None
    i = 0
    length = len(sql)

    while i < length:
        ch = sql[i]
        comment_end = None if quote else _comment_end(sql, i)
        if comment_end is not None:
            current.append(sql[i:comment_end])
            i = comment_end
            continue
        if quote:
            current.append(ch)
            if ch == "\\" and quote != "`" and i + 1 < length:
                current.append(sql[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
            current.append(ch)
        elif ch == "?":
            segments.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1

    segments.append("".join(current))
    return segments


def count_placeholders(sql: str) -> int:
    return len(split_placeholders(sql)) - 1


def quote_identifier(name: str) -> str:
    """Backtick-quote a table or column name.

    This is the only sanctioned way to put a dynamic identifier into SQL;
    values must go through parameterized execute instead.
    """
    return "`" + str(name).replace("`", "``") + "`"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
