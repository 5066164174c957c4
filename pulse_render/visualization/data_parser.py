"""
Query result parsing and column type detection for pulse cards.

Column type tags from the query layer are mapped once, at ingestion, onto
the closed `ColumnKind` enumeration. A column is also flagged numeric when
either tag is numeric, so an integer UNIX timestamp is both a datetime
(`kind`) and a number (`is_number`).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


class ColumnKind(Enum):
    DATETIME = "datetime"
    NUMBER = "number"
    OTHER = "other"


class DataParser:
    """Maps query-layer type tags onto ColumnKind."""

    DATETIME_TYPES = frozenset({
        'DateTime', 'DateTimeWithTZ', 'DateTimeWithLocalTZ', 'DateTimeWithZoneOffset',
        'DateTimeWithZoneID', 'Date', 'Time', 'TimeWithTZ', 'Temporal',
        'UNIXTimestamp', 'UNIXTimestampSeconds', 'UNIXTimestampMilliseconds',
        'UNIXTimestampMicroseconds',
        'ISO8601DateTimeString', 'ISO8601DateString', 'CreationTimestamp',
        'CreationDate', 'UpdatedTimestamp', 'JoinTimestamp', 'CancelationTimestamp',
        'DeletionTimestamp', 'Birthdate',
    })

    NUMBER_TYPES = frozenset({
        'Number', 'Integer', 'BigInteger', 'Float', 'Decimal', 'Coordinate',
        'Latitude', 'Longitude', 'Currency', 'Income', 'Discount', 'Price',
        'GrossMargin', 'Cost', 'Quantity', 'Score', 'Share', 'Percentage',
        'Duration',
    })

    # Unit of numeric epoch offsets by special type; anything else is milliseconds
    EPOCH_UNITS = {
        'UNIXTimestampSeconds': 's',
        'UNIXTimestampMilliseconds': 'ms',
        'UNIXTimestampMicroseconds': 'us',
    }

    @staticmethod
    def _strip_tag(type_tag: Optional[str]) -> Optional[str]:
        if not type_tag:
            return None
        tag = str(type_tag).lstrip(':')
        return tag[len('type/'):] if tag.startswith('type/') else tag

    @classmethod
    def detect_column_kind(cls, base_type: Optional[str], special_type: Optional[str]) -> ColumnKind:
        """
        Classify a column from its base and special type tags.

        Datetime wins over number, so a UNIX timestamp stored as an integer is a
        datetime; `is_numeric_type` still reports it as numeric.
        """
        tags = [cls._strip_tag(base_type), cls._strip_tag(special_type)]
        if any(tag in cls.DATETIME_TYPES for tag in tags):
            return ColumnKind.DATETIME
        if any(tag in cls.NUMBER_TYPES for tag in tags):
            return ColumnKind.NUMBER
        return ColumnKind.OTHER

    @classmethod
    def is_numeric_type(cls, base_type: Optional[str], special_type: Optional[str]) -> bool:
        """Whether either tag is numeric, independently of the column's kind."""
        return any(cls._strip_tag(tag) in cls.NUMBER_TYPES for tag in (base_type, special_type))

    @classmethod
    def detect_epoch_unit(cls, special_type: Optional[str]) -> str:
        return cls.EPOCH_UNITS.get(cls._strip_tag(special_type), 'ms')


@dataclass(frozen=True)
class Column:
    name: str
    display_name: Optional[str] = None
    base_type: Optional[str] = None
    special_type: Optional[str] = None
    unit: Optional[str] = None
    remapped_to: Optional[str] = None
    remapped_from: Optional[str] = None
    kind: ColumnKind = ColumnKind.OTHER
    numeric: bool = False
    epoch_unit: str = 'ms'

    @property
    def is_datetime(self) -> bool:
        return self.kind is ColumnKind.DATETIME

    @property
    def is_number(self) -> bool:
        return self.numeric or self.kind is ColumnKind.NUMBER

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @classmethod
    def from_dict(cls, col: Mapping[str, Any]) -> 'Column':
        if 'name' not in col:
            raise ValueError(f"Column is missing a name: {dict(col)}")
        if col.get('remapped_to') and col.get('remapped_from'):
            raise ValueError(f"Column '{col['name']}' is both remapped_to and remapped_from")

        unit = col.get('unit')
        if unit is not None:
            unit = str(unit).lstrip(':').replace('_', '-')

        return cls(
            name=str(col['name']),
            display_name=col.get('display_name'),
            base_type=col.get('base_type'),
            special_type=col.get('special_type'),
            unit=unit,
            remapped_to=col.get('remapped_to'),
            remapped_from=col.get('remapped_from'),
            kind=DataParser.detect_column_kind(col.get('base_type'), col.get('special_type')),
            numeric=DataParser.is_numeric_type(col.get('base_type'), col.get('special_type')),
            epoch_unit=DataParser.detect_epoch_unit(col.get('special_type')),
        )


@dataclass(frozen=True)
class QueryResult:
    columns: Tuple[Column, ...] = ()
    rows: Tuple[Tuple[Any, ...], ...] = ()
    error: Optional[str] = None

    @property
    def col_count(self) -> int:
        return len(self.columns)

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class Card:
    id: Any = None
    name: str = ""
    display: Optional[str] = None
    dataset_query: Mapping[str, Any] = field(default_factory=dict)

    @property
    def first_aggregation(self) -> Optional[str]:
        """First aggregation clause of the card's query, e.g. 'rows' or 'count'."""
        query = self.dataset_query.get('query') or {}
        aggregation = query.get('aggregation')
        if not aggregation:
            return None
        if isinstance(aggregation, (list, tuple)):
            aggregation = aggregation[0]
            if isinstance(aggregation, (list, tuple)):
                aggregation = aggregation[0] if aggregation else None
        return str(aggregation).lstrip(':').lower() if aggregation is not None else None


def _validate_remapping(columns: Sequence[Column]) -> None:
    names = {col.name for col in columns}
    for col in columns:
        if col.remapped_from and col.remapped_from not in names:
            raise ValueError(
                f"Column '{col.name}' is remapped from unknown column '{col.remapped_from}'"
            )


def parse_columns(cols: Sequence[Any]) -> Tuple[Column, ...]:
    columns = tuple(c if isinstance(c, Column) else Column.from_dict(c) for c in cols)
    _validate_remapping(columns)
    return columns


def parse_query_result(payload: Any) -> QueryResult:
    """
    Build a QueryResult from a query-layer payload.

    Accepts {'data': {'cols': [...], 'rows': [...]}, 'error': ...} or the flat
    {'cols' | 'columns': [...], 'rows': [...], 'error': ...} form. QueryResult
    instances are returned unchanged.

    Raises:
        ValueError: If the payload is malformed
    """
    if isinstance(payload, QueryResult):
        return payload
    if not isinstance(payload, Mapping):
        raise ValueError(f"Query result must be a mapping, got {type(payload).__name__}")

    error = payload.get('error')
    data = payload.get('data')
    if not isinstance(data, Mapping):
        data = payload

    cols = data.get('cols', data.get('columns')) or []
    rows = data.get('rows') or []

    columns = parse_columns(cols)
    parsed_rows = tuple(tuple(row) for row in rows)

    if error is None:
        for i, row in enumerate(parsed_rows):
            if len(row) != len(columns):
                raise ValueError(
                    f"Row {i} has {len(row)} values but there are {len(columns)} columns"
                )

    return QueryResult(columns=columns, rows=parsed_rows, error=str(error) if error else None)


def parse_card(payload: Any) -> Card:
    """
    Build a Card from its descriptor {id, name, display, dataset_query}.

    Raises:
        ValueError: If the payload is not a mapping
    """
    if isinstance(payload, Card):
        return payload
    if not isinstance(payload, Mapping):
        raise ValueError(f"Card must be a mapping, got {type(payload).__name__}")

    display = payload.get('display')
    return Card(
        id=payload.get('id'),
        name=str(payload.get('name') or ""),
        display=str(display).lstrip(':') if display is not None else None,
        dataset_query=payload.get('dataset_query') or {},
    )


def column_kinds(result: QueryResult) -> Dict[str, ColumnKind]:
    """Column name -> ColumnKind, for logging and diagnostics."""
    return {col.name: col.kind for col in result.columns}
