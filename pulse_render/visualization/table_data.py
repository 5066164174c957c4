"""
Turns query result columns and rows into display-ready table rows:
remapped columns resolved, values formatted, limits applied, and optional
per-row bar widths computed against a maximum value.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .data_parser import Column
from .formatting import Timezone, format_cell, format_number
from .markup import Element, Raw, h
from .themes import PULSE_THEME, get_color, get_style, style

ROWS_LIMIT = 10
COLS_LIMIT = 3

# Width reserved for the bar column in the header row, in percent
HEADER_BAR_WIDTH = 99

BarColumn = Callable[[Sequence[Any]], Any]


@dataclass(frozen=True)
class TableRow:
    cells: Tuple[str, ...]
    bar_width: Optional[float] = None


def create_remapping_lookup(columns: Sequence[Column]) -> Dict[str, int]:
    """
    Map each remapped-from column name to the index of the column that replaces it.

    Used to figure out what a given column name or value should be replaced with.
    """
    return {
        col.remapped_from: idx
        for idx, col in enumerate(columns)
        if col.remapped_from
    }


def _display_index(remapping: Mapping[str, int], columns: Sequence[Column], idx: int) -> Optional[int]:
    """
    Index whose header and values are shown at position `idx`, or None if
    the column at `idx` is a substitute already shown elsewhere.
    """
    col = columns[idx]
    if col.remapped_from:
        return None
    if col.remapped_to and col.name in remapping:
        return remapping[col.name]
    return idx


def build_header_row(remapping: Mapping[str, int], columns: Sequence[Column],
                     include_bar: bool, column_limit: Optional[int] = None) -> TableRow:
    """Header cells (upper-cased display names) for the first `column_limit` columns."""
    limit = len(columns) if column_limit is None else column_limit
    cells = []
    for idx in range(min(limit, len(columns))):
        source = _display_index(remapping, columns, idx)
        if source is None:
            continue
        cells.append(columns[source].label.upper())
    return TableRow(cells=tuple(cells), bar_width=HEADER_BAR_WIDTH if include_bar else None)


def _bar_width(row: Sequence[Any], bar_column: BarColumn, max_value: Any) -> float:
    # Not clamped: callers pass the true maximum of the rows
    if not max_value:
        return 0.0
    return 100 * float(bar_column(row)) / float(max_value)


def build_row_seq(timezone: Timezone, remapping: Mapping[str, int], columns: Sequence[Column],
                  rows: Sequence[Sequence[Any]], bar_column: Optional[BarColumn] = None,
                  max_value: Any = None, column_limit: Optional[int] = None) -> List[TableRow]:
    """Formatted body rows, applying the same remapping rule as the header."""
    limit = len(columns) if column_limit is None else column_limit
    shown = [
        source for source in (
            _display_index(remapping, columns, idx)
            for idx in range(min(limit, len(columns)))
        )
        if source is not None
    ]

    table_rows = []
    for row in rows:
        cells = tuple(format_cell(timezone, row[source], columns[source]) for source in shown)
        bar_width = _bar_width(row, bar_column, max_value) if bar_column else None
        table_rows.append(TableRow(cells=cells, bar_width=bar_width))
    return table_rows


def prep_for_display(timezone: Timezone, columns: Sequence[Column], rows: Sequence[Sequence[Any]],
                     bar_column: Optional[BarColumn], max_value: Any,
                     column_limit: int) -> List[TableRow]:
    """
    Header row followed by at most ROWS_LIMIT body rows, restricted to the
    first `column_limit` columns.
    """
    remapping = create_remapping_lookup(columns)
    header = build_header_row(remapping, columns, bar_column is not None, column_limit)
    body = build_row_seq(timezone, remapping, columns, rows[:ROWS_LIMIT],
                         bar_column, max_value, column_limit)
    return [header] + body


def truncation_warning(col_limit: int, col_count: int, row_limit: int, row_count: int,
                       theme: Mapping[str, Any] = PULSE_THEME) -> Optional[Element]:
    """Notice shown under a truncated table; row truncation wins over column truncation."""
    if row_count > row_limit:
        shown, total, noun = row_limit, row_count, "rows"
    elif col_count > col_limit:
        shown, total, noun = col_limit, col_count, "columns"
    else:
        return None

    strong = {'style': style({'color': get_color(theme, 'gray_3')})}
    return h('div', {'style': style({'padding-top': '16px'})},
             h('div', {'style': style({'color': get_color(theme, 'gray_2'),
                                       'padding-bottom': '10px'})},
               "Showing ", h('strong', strong, format_number(shown)),
               " of ", h('strong', strong, format_number(total)),
               f" {noun}."))


def render_table(header_and_rows: Sequence[TableRow],
                 theme: Mapping[str, Any] = PULSE_THEME) -> Element:
    header, body = header_and_rows[0], header_and_rows[1:]
    td_style = get_style(theme, 'bar_td')
    th_style = get_style(theme, 'bar_th')

    head = h('thead', None,
             h('tr', None,
               [h('th', {'style': style(td_style, th_style, {'min-width': '60px'})}, cell)
                for cell in header.cells],
               h('th', {'style': style(td_style, th_style, {'width': f"{header.bar_width}%"})})
               if header.bar_width is not None else None))

    body_rows = []
    for row_idx, row in enumerate(body):
        has_bar = row.bar_width is not None
        color = get_color(theme, 'gray_2' if row_idx % 2 else 'gray_3')
        cells = [
            h('td', {'style': style(td_style, {'font-weight': 700} if has_bar and col_idx == 1 else None)},
              cell)
            for col_idx, cell in enumerate(row.cells)
        ]
        bar = None
        if has_bar:
            bar = h('td', {'style': style(td_style, {'width': '99%'})},
                    h('div', {'style': style({'background-color': get_color(theme, 'purple'),
                                              'max-height': '10px',
                                              'height': '10px',
                                              'border-radius': '2px',
                                              'width': f"{row.bar_width}%"})},
                      Raw("&#160;")))
        body_rows.append(h('tr', {'style': style({'color': color})}, cells, bar))

    return h('table', {'style': style({'padding-bottom': '8px',
                                       'border-bottom': f"4px solid {get_color(theme, 'gray_1')}"})},
             head,
             h('tbody', None, body_rows))
