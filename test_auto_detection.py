#!/usr/bin/env python3
"""
Tests for column kind detection and pulse card type classification.
"""

import itertools

import pytest

from pulse_render.visualization.auto_detection import CardType, detect_pulse_card_type
from pulse_render.visualization.data_parser import (
    Card,
    ColumnKind,
    DataParser,
    parse_card,
    parse_query_result,
)

DATE = {'name': 'day', 'base_type': 'type/DateTime', 'unit': 'day'}
NUMBER = {'name': 'count', 'base_type': 'type/Integer'}
TEXT = {'name': 'name', 'base_type': 'type/Text'}


def result(cols, rows):
    return parse_query_result({'data': {'cols': cols, 'rows': rows}})


@pytest.mark.parametrize("base_type, special_type, expected", [
    ('type/DateTime', None, ColumnKind.DATETIME),
    ('type/Date', None, ColumnKind.DATETIME),
    ('type/Integer', 'type/UNIXTimestampSeconds', ColumnKind.DATETIME),
    (':type/Float', None, ColumnKind.NUMBER),
    ('type/Text', 'type/Currency', ColumnKind.NUMBER),
    ('type/Text', None, ColumnKind.OTHER),
    (None, None, ColumnKind.OTHER),
])
def test_detect_column_kind(base_type, special_type, expected):
    assert DataParser.detect_column_kind(base_type, special_type) is expected


def test_rows_aggregation_unsupported():
    card = parse_card({'id': 1, 'dataset_query': {'query': {'aggregation': [['rows']]}}})
    assert detect_pulse_card_type(card, result([NUMBER], [[1]])) is CardType.UNSUPPORTED

    card = parse_card({'id': 1, 'dataset_query': {'query': {'aggregation': ':rows'}}})
    assert detect_pulse_card_type(card, result([NUMBER], [[1]])) is CardType.UNSUPPORTED


@pytest.mark.parametrize("display", ['pin_map', 'state', 'country', ':pin_map'])
def test_map_displays_unsupported(display):
    card = parse_card({'id': 1, 'display': display})
    assert detect_pulse_card_type(card, result([NUMBER], [[1]])) is CardType.UNSUPPORTED


@pytest.mark.parametrize("rows", [[], [[None]], [[]]])
def test_empty(rows):
    cols = [] if rows == [[]] else [NUMBER]
    assert detect_pulse_card_type(Card(id=1), result(cols, rows)) is CardType.EMPTY


def test_scalar():
    assert detect_pulse_card_type(Card(id=1), result([NUMBER], [[42]])) is CardType.SCALAR


def test_sparkline():
    rows = [["2017-01-01", 1], ["2017-01-02", 2], ["2017-01-03", 3]]
    assert detect_pulse_card_type(Card(id=1), result([DATE, NUMBER], rows)) is CardType.SPARKLINE


def test_single_row_time_series_is_bar():
    assert detect_pulse_card_type(Card(id=1), result([DATE, NUMBER], [["2017-01-01", 1]])) is CardType.BAR


def test_bar():
    rows = [["a", 1], ["b", 2]]
    assert detect_pulse_card_type(Card(id=1), result([TEXT, NUMBER], rows)) is CardType.BAR


def test_unix_timestamp_column_counts_as_number():
    """An integer column tagged as a UNIX timestamp is a datetime and still a number."""
    created = {'name': 'created', 'base_type': 'type/Integer', 'special_type': 'type/UNIXTimestampSeconds'}
    res = result([TEXT, created], [["a", 1], ["b", 2]])

    assert res.columns[1].is_datetime and res.columns[1].is_number
    assert detect_pulse_card_type(Card(id=1), res) is CardType.BAR


def test_table():
    assert detect_pulse_card_type(Card(id=1), result([TEXT, TEXT], [["a", "b"], ["c", "d"]])) is CardType.TABLE
    assert detect_pulse_card_type(Card(id=1), result([TEXT, NUMBER, NUMBER], [["a", 1, 2]])) is CardType.TABLE
    assert detect_pulse_card_type(Card(id=1), result([DATE, TEXT], [["2017-01-01", "a"], ["2017-01-02", "b"]])) is CardType.TABLE


def test_every_shape_classified():
    """Every combination of card settings and result shape gets exactly one deterministic type."""
    cards = [
        Card(id=1),
        Card(id=2, display='pin_map'),
        Card(id=3, dataset_query={'query': {'aggregation': [['count']]}}),
    ]
    column_sets = [[NUMBER], [DATE, NUMBER], [TEXT, NUMBER], [TEXT, TEXT], [DATE, NUMBER, TEXT]]
    row_counts = [0, 1, 2, 12]

    for card, cols, n in itertools.product(cards, column_sets, row_counts):
        rows = [[None if c is TEXT else (i if c is NUMBER else "2017-01-01") for c in cols] for i in range(n)]
        data = result(cols, rows)
        first = detect_pulse_card_type(card, data)
        assert isinstance(first, CardType)
        assert detect_pulse_card_type(card, data) is first


def test_malformed_result():
    with pytest.raises(ValueError):
        parse_query_result({'cols': [NUMBER], 'rows': [[1, 2]]})
    with pytest.raises(ValueError):
        parse_query_result({'cols': [{'name': 'a', 'remapped_from': 'missing'}], 'rows': []})
    with pytest.raises(ValueError):
        parse_query_result("not a result")
