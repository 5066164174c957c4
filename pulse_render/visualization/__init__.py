"""
Pulse card visualization module

Classifies query results into one of five fixed visualizations and turns
them into HTML markup, drawing sparklines with matplotlib. Image bundles and
renderers live in `image_bundle` and `renderers`; they read the render
configuration, so they are imported from there rather than re-exported here.
"""

from .auto_detection import CardType, detect_pulse_card_type
from .chart_generator import ChartGenerator, normalize_series, render_sparkline_to_png
from .data_parser import Card, Column, ColumnKind, DataParser, QueryResult, parse_card, parse_query_result
from .formatting import (
    format_cell,
    format_number,
    format_timestamp,
    format_timestamp_pair,
    format_timestamp_relative,
)
from .markup import Element, Raw, h
from .table_data import COLS_LIMIT, ROWS_LIMIT, TableRow, prep_for_display, truncation_warning
from .themes import PULSE_THEME, style
from .utils import encode_image, render_img_data_uri

__all__ = [
    'CardType',
    'detect_pulse_card_type',
    'ChartGenerator',
    'normalize_series',
    'render_sparkline_to_png',
    'Card',
    'Column',
    'ColumnKind',
    'DataParser',
    'QueryResult',
    'parse_card',
    'parse_query_result',
    'format_cell',
    'format_number',
    'format_timestamp',
    'format_timestamp_pair',
    'format_timestamp_relative',
    'Element',
    'Raw',
    'h',
    'COLS_LIMIT',
    'ROWS_LIMIT',
    'TableRow',
    'prep_for_display',
    'truncation_warning',
    'PULSE_THEME',
    'style',
    'encode_image',
    'render_img_data_uri',
]
