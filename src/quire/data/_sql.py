"""Placeholder scanning for ``?``-style SQL.

Only ``?`` characters outside single- and double-quoted literals and
outside comments (``-- ...`` to end of line, ``/* ... */``) count as
placeholders. ``''`` inside a literal is an escaped quote.
"""

from collections.abc import Iterator


def _placeholder_positions(sql: str) -> Iterator[int]:
    quote: str | None = None
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        if quote is not None:
            if ch == quote:
                # Doubled quote is an escape, stay inside the literal
                if i + 1 < n and sql[i + 1] == quote:
                    i += 2
                    continue
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end + 1
            continue
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        elif ch == "?":
            yield i
        i += 1


def count_placeholders(sql: str) -> int:
    """Number of positional ``?`` placeholders in *sql*."""
    return sum(1 for _ in _placeholder_positions(sql))


def to_numbered(sql: str) -> str:
    """Rewrite ``?`` placeholders as ``$1, $2, ...`` (PostgreSQL style).

    ::

        to_numbered("SELECT * FROM t WHERE a = ? AND b = '?'")
        # "SELECT * FROM t WHERE a = $1 AND b = '?'"
    """
    parts: list[str] = []
    last = 0
    for number, pos in enumerate(_placeholder_positions(sql), start=1):
        parts.append(sql[last:pos])
        parts.append(f"${number}")
        last = pos + 1
    parts.append(sql[last:])
    return "".join(parts)
