"""
Renderers for the five pulse card visualizations.

Each renderer takes a classified query result and returns a
RenderedFragment: the card body markup plus the attachments its images
need (None when there are none).
"""

from dataclasses import dataclass
from operator import itemgetter
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .chart_generator import normalize_series, render_sparkline_to_png
from .data_parser import Card, Column, QueryResult
from .formatting import Timezone, format_cell, format_number, format_timestamp_pair, to_timestamp
from .image_bundle import (
    RenderMode,
    image_bundle_to_attachment,
    make_image_bundle,
    no_results_image_bundle,
)
from .markup import Element, h
from .table_data import (
    COLS_LIMIT,
    ROWS_LIMIT,
    prep_for_display,
    render_table as render_table_markup,
    truncation_warning,
)
from .themes import PULSE_THEME, get_color, get_style, style

Attachments = Optional[Dict[str, Path]]

# Bar cards show the label column and the value column
BAR_COLS_LIMIT = 2


@dataclass(frozen=True)
class RenderedFragment:
    content: Element
    attachments: Attachments = None


def merge_attachments(*attachment_maps: Attachments) -> Attachments:
    """Merge attachment maps; None when none of them reference an image."""
    merged = {}
    for attachments in attachment_maps:
        if attachments:
            merged.update(attachments)
    return merged or None


def render_empty(render_mode: RenderMode, card: Card, result: QueryResult,
                 theme: Mapping[str, Any] = PULSE_THEME) -> RenderedFragment:
    image_bundle = no_results_image_bundle(render_mode)
    return RenderedFragment(
        attachments=image_bundle_to_attachment(image_bundle),
        content=h('div', {'style': style({'text-align': 'center'})},
                  h('img', {'style': style({'width': '104px'}),
                            'src': image_bundle.image_src}),
                  h('div', {'style': style({'margin-top': '8px',
                                            'color': get_color(theme, 'gray_4')})},
                    "No results")),
    )


def render_scalar(timezone: Timezone, card: Card, result: QueryResult,
                  theme: Mapping[str, Any] = PULSE_THEME) -> RenderedFragment:
    value = format_cell(timezone, result.rows[0][0], result.columns[0])
    return RenderedFragment(
        content=h('div', {'style': style(get_style(theme, 'scalar'))}, value),
    )


def render_bar(timezone: Timezone, card: Card, result: QueryResult,
               theme: Mapping[str, Any] = PULSE_THEME) -> RenderedFragment:
    bar_column = itemgetter(1)
    max_value = max(bar_column(row) for row in result.rows)
    table = prep_for_display(timezone, result.columns, result.rows,
                             bar_column, max_value, BAR_COLS_LIMIT)
    return RenderedFragment(
        content=h('div', None,
                  render_table_markup(table, theme),
                  truncation_warning(BAR_COLS_LIMIT, result.col_count,
                                     ROWS_LIMIT, result.row_count, theme)),
    )


def render_table(timezone: Timezone, card: Card, result: QueryResult,
                 theme: Mapping[str, Any] = PULSE_THEME) -> RenderedFragment:
    table = prep_for_display(timezone, result.columns, result.rows, None, None, COLS_LIMIT)
    return RenderedFragment(
        content=h('div', None,
                  render_table_markup(table, theme),
                  truncation_warning(COLS_LIMIT, result.col_count,
                                     ROWS_LIMIT, result.row_count, theme)),
    )


def _epoch_millis(timezone: Timezone, value: Any, column: Column) -> int:
    return to_timestamp(value, timezone, column.epoch_unit).value // 1_000_000


def render_sparkline(render_mode: RenderMode, timezone: Timezone, card: Card, result: QueryResult,
                     theme: Mapping[str, Any] = PULSE_THEME) -> RenderedFragment:
    """
    Sparkline of the series plus its two most recent values and their labels.

    Rows are put in ascending time order whatever order the query returned.
    """
    x_col = result.columns[0]
    if x_col.is_datetime:
        x_value = lambda row: _epoch_millis(timezone, row[0], x_col)
    else:
        x_value = itemgetter(0)

    rows = list(result.rows)
    if x_value(rows[0]) > x_value(rows[-1]):
        rows.reverse()

    xs = normalize_series([x_value(row) for row in rows])
    ys = normalize_series([row[1] for row in rows], floor=1)

    geometry = theme['sparkline']
    image_bundle = make_image_bundle(
        render_mode,
        render_sparkline_to_png(xs, ys, geometry['width'], geometry['height'], theme),
    )

    previous, latest = rows[-2], rows[-1]
    latest_label, previous_label = format_timestamp_pair(timezone, (latest[0], previous[0]), x_col)

    brand = get_color(theme, 'brand')
    gray = get_color(theme, 'gray_3')

    content = h('div', None,
                h('img', {'style': style({'display': 'block', 'width': '100%'}),
                          'src': image_bundle.image_src}),
                h('table', None,
                  h('tr', None,
                    h('td', {'style': style({'color': gray, 'font-size': '24px',
                                             'font-weight': 700, 'padding-right': '16px'})},
                      format_number(previous[1])),
                    h('td', {'style': style({'color': brand, 'font-size': '24px',
                                             'font-weight': 700})},
                      format_number(latest[1]))),
                  h('tr', None,
                    h('td', {'style': style({'color': gray, 'font-size': '16px',
                                             'padding-right': '16px'})},
                      previous_label),
                    h('td', {'style': style({'color': brand, 'font-size': '16px',
                                             'font-weight': 700})},
                      latest_label))))

    return RenderedFragment(
        attachments=image_bundle_to_attachment(image_bundle),
        content=content,
    )
