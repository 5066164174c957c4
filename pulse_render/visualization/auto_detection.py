"""
Auto-detection of the visualization used to render a pulse card.
"""

from enum import Enum

from .data_parser import Card, QueryResult


class CardType(Enum):
    EMPTY = "empty"
    SCALAR = "scalar"
    SPARKLINE = "sparkline"
    BAR = "bar"
    TABLE = "table"
    # Classification outcome for cards none of the above can display
    UNSUPPORTED = "unsupported"


# Map visualizations have no email rendering
UNSUPPORTED_DISPLAYS = frozenset({
    'pin_map', 'state', 'country',
    'pin-map', 'state-map', 'country-map',
})


def _is_empty(result: QueryResult) -> bool:
    if result.row_count == 0:
        return True
    # Many aggregations produce [[None]] when filters leave nothing to aggregate
    if result.row_count == 1:
        row = result.rows[0]
        return len(row) == 0 or (len(row) == 1 and row[0] is None)
    return False


def detect_pulse_card_type(card: Card, result: QueryResult) -> CardType:
    """
    Determine the visualization of a card from its settings and result shape.

    Checks run top to bottom and the first match wins; the datetime check on
    the first column is what separates a sparkline from a bar chart.

    Args:
        card: Card descriptor
        result: Query result for the card

    Returns:
        The CardType to render with
    """
    if card.first_aggregation == 'rows' or card.display in UNSUPPORTED_DISPLAYS:
        return CardType.UNSUPPORTED

    if _is_empty(result):
        return CardType.EMPTY

    col_count = result.col_count
    row_count = result.row_count

    if col_count == 1 and row_count == 1:
        return CardType.SCALAR

    if col_count == 2:
        col_1, col_2 = result.columns
        if row_count > 1 and col_1.is_datetime and col_2.is_number:
            return CardType.SPARKLINE
        if col_2.is_number:
            return CardType.BAR

    return CardType.TABLE
