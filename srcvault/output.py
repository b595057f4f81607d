"""
Output formatting for srcvault commands.

Commands print records on stdout as one JSON object per line, so runs can
be piped into jq or other tools. With --pretty the same records are shown
as a rich table instead. Errors always go to stderr as a single JSON
object, keeping stdout parseable.

Usage:
    from srcvault.output import emit, emit_error

    emit(catalog.list_releases(), pretty=pretty, columns=['entity', 'version'])
    emit_error("HTTP 404 from https://...", type="TransportError")
"""

import json
import sys
from typing import Any, Dict, Iterable, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

CELL_WIDTH = 80


def emit(
    items: Iterable[Any],
    pretty: bool = False,
    columns: Optional[List[str]] = None,
    title: Optional[str] = None,
) -> None:
    """
    Print records as JSONL, or as a table when ``pretty`` is set.

    Args:
        items: records with ``to_dict()``, or plain dicts
        pretty: render a rich table instead of JSONL
        columns: table columns (default: keys of the first record)
        title: table title
    """
    if pretty:
        _emit_table(items, columns, title)
    else:
        _emit_jsonl(items)


def _as_dict(item: Any) -> Dict[str, Any]:
    if isinstance(item, dict):
        return item
    to_dict = getattr(item, 'to_dict', None)
    if to_dict is not None:
        return to_dict()
    return {'value': str(item)}


def _emit_jsonl(items: Iterable[Any], stream=None) -> None:
    stream = stream or sys.stdout
    for item in items:
        stream.write(json.dumps(_as_dict(item), ensure_ascii=False) + "\n")
        stream.flush()


def _emit_table(items: Iterable[Any], columns: Optional[List[str]] = None,
                title: Optional[str] = None) -> None:
    records = [_as_dict(item) for item in items]
    console = Console()

    if not records:
        console.print("[yellow]Nothing to show.[/yellow]")
        return

    columns = columns or list(records[0])
    table = Table(title=title, box=box.ROUNDED, header_style="bold magenta")
    for column in columns:
        table.add_column(column)
    for record in records:
        table.add_row(*(_cell(record.get(column)) for column in columns))

    console.print(table)


def _cell(value: Any) -> str:
    """Render one table cell; lists are shown as their length."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'yes' if value else 'no'
    if isinstance(value, (list, tuple)):
        return str(len(value))

    text = str(value)
    if len(text) > CELL_WIDTH:
        text = text[:CELL_WIDTH - 1] + '…'
    return text


def emit_error(
    error: str,
    type: str = "error",
    context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Print an error object on stderr.

    Args:
        error: human readable message
        type: exception class name, e.g. "TransportError"
        context: extra fields such as the exit code or the failing URL
    """
    payload: Dict[str, Any] = {'error': error, 'type': type}
    if context:
        payload['context'] = context

    sys.stderr.write(json.dumps(payload, ensure_ascii=False) + "\n")
    sys.stderr.flush()
