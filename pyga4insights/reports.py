"""
Request and result types for GA4 `runReport`.

Dimension and metric names are passed straight through; the Data API is the only thing that validates them.
Date strings are passed through too, so relative dates ("today", "yesterday", "7daysAgo") work as-is.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

POSITIONAL_FIELDS = ('country', 'totalUsers', 'newUsers', 'sessions')

STRING_MATCH_TYPES = ('EXACT', 'BEGINS_WITH', 'ENDS_WITH', 'CONTAINS', 'FULL_REGEXP', 'PARTIAL_REGEXP')


@dataclass(frozen=True)
class DateRange:
    start_date: str
    end_date: str

    def to_payload(self) -> dict:
        return {'startDate': self.start_date, 'endDate': self.end_date}


@dataclass(frozen=True)
class DimensionFilter:
    """
    A single-field predicate: either a string match (`value` + `match_type`) or an inclusion list (`values`).
    `negate=True` wraps it in a GA4 `notExpression`.
    """
    field_name: str
    value: Optional[str] = None
    match_type: str = 'EXACT'
    case_sensitive: Optional[bool] = None
    values: Optional[tuple] = None
    negate: bool = False

    def __post_init__(self):
        if (self.value is None) == (self.values is None):
            raise ValueError("DimensionFilter needs exactly one of `value` or `values`")
        if self.value is not None and self.match_type not in STRING_MATCH_TYPES:
            raise ValueError(f"unsupported match_type {self.match_type!r}")
        if self.values is not None:
            object.__setattr__(self, 'values', tuple(self.values))

    @classmethod
    def string(cls, field_name: str, value: str, match_type: str = 'EXACT',
               case_sensitive: bool = None, negate: bool = False):
        return cls(field_name=field_name, value=value, match_type=match_type,
                   case_sensitive=case_sensitive, negate=negate)

    @classmethod
    def in_list(cls, field_name: str, values: list[str], negate: bool = False):
        return cls(field_name=field_name, values=tuple(values), negate=negate)

    def to_payload(self) -> dict:
        _filter = {'fieldName': self.field_name}
        if self.values is not None:
            _filter['inListFilter'] = {'values': list(self.values)}
        else:
            _filter['stringFilter'] = {'matchType': self.match_type, 'value': self.value}
            if self.case_sensitive is not None:
                _filter['stringFilter']['caseSensitive'] = self.case_sensitive

        if self.negate:
            return {'notExpression': {'filter': _filter}}
        return {'filter': _filter}


@dataclass(frozen=True)
class OrderBy:
    metric: Optional[str] = None
    dimension: Optional[str] = None
    desc: bool = False

    def __post_init__(self):
        if (self.metric is None) == (self.dimension is None):
            raise ValueError("OrderBy needs exactly one of `metric` or `dimension`")

    def to_payload(self) -> dict:
        if self.metric is not None:
            return {'metric': {'metricName': self.metric}, 'desc': self.desc}
        return {'dimension': {'dimensionName': self.dimension}, 'desc': self.desc}


@dataclass(frozen=True)
class ReportQuery:
    date_ranges: tuple
    dimensions: tuple = ()
    metrics: tuple = ()
    dimension_filter: Optional[DimensionFilter] = None
    order_bys: Optional[tuple] = None
    limit: int = 10

    def __post_init__(self):
        # bool is an int subclass but never a sensible row cap
        if not isinstance(self.limit, int) or isinstance(self.limit, bool) or self.limit < 1:
            raise ValueError(f"limit must be a positive integer, got {self.limit!r}")
        if not self.date_ranges:
            raise ValueError("at least one date range is required")
        object.__setattr__(self, 'date_ranges', tuple(_as_date_range(_dr) for _dr in self.date_ranges))
        object.__setattr__(self, 'dimensions', tuple(self.dimensions))
        object.__setattr__(self, 'metrics', tuple(self.metrics))
        if self.order_bys is not None:
            object.__setattr__(self, 'order_bys', tuple(self.order_bys))

    def to_payload(self) -> dict:
        payload = {
            'dateRanges': [_dr.to_payload() for _dr in self.date_ranges],
            'dimensions': [{'name': _d} for _d in self.dimensions],
            'metrics': [{'name': _m} for _m in self.metrics],
            'limit': self.limit
        }
        if self.dimension_filter is not None:
            payload['dimensionFilter'] = self.dimension_filter.to_payload()
        if self.order_bys:
            payload['orderBys'] = [_o.to_payload() for _o in self.order_bys]
        return payload


def _as_date_range(date_range) -> DateRange:
    if isinstance(date_range, DateRange):
        return date_range
    if isinstance(date_range, dict):
        return DateRange(start_date=date_range['startDate'], end_date=date_range['endDate'])
    start_date, end_date = date_range
    return DateRange(start_date=start_date, end_date=end_date)


class ReportKind(str, Enum):
    RAW = 'raw'
    USERS_BY_COUNTRY = 'users_by_country'
    TOP_CONVERSION_EVENTS = 'top_conversion_events'
    CONVERSIONS_BY_SOURCE_MEDIUM = 'conversions_by_source_medium'
    CONVERSIONS_BY_DEVICE = 'conversions_by_device'
    POPULAR_PAGES_WITH_ENGAGEMENT = 'popular_pages_with_engagement'
    USER_JOURNEY_PATHS = 'user_journey_paths'
    TOP_INTERACTION_EVENTS = 'top_interaction_events'
    SESSIONS_BY_DEVICE_CATEGORY = 'sessions_by_device_category'
    SESSIONS_BY_DEFAULT_CHANNEL_GROUP = 'sessions_by_default_channel_group'
    ORGANIC_VS_PAID = 'organic_vs_paid'
    USERS_BY_CITY = 'users_by_city'
    USERS_BY_AGE_BRACKET = 'users_by_age_bracket'
    TODAY_VS_YESTERDAY = 'today_vs_yesterday'
    THIS_WEEK_VS_LAST_WEEK = 'this_week_vs_last_week'


@dataclass(frozen=True)
class ReportRow:
    """Ordered (label, value) cells; labels are the report headers."""
    cells: tuple

    @classmethod
    def from_values(cls, headers: list[str], values: list[str]):
        return cls(cells=tuple(zip(headers, values)))

    @property
    def labels(self) -> list[str]:
        return [_c[0] for _c in self.cells]

    @property
    def values(self) -> list[str]:
        return [_c[1] for _c in self.cells]

    def __getitem__(self, label: str) -> str:
        for _label, _value in self.cells:
            if _label == label:
                return _value
        raise KeyError(label)

    def __iter__(self) -> Iterator[tuple]:
        return iter(self.cells)

    def as_dict(self) -> dict:
        return dict(self.cells)

    def positional(self) -> dict:
        """
        The legacy 4-field shape: cells fill `country`, `totalUsers`, `newUsers`, `sessions` in order and unused
        positions are '0'. What each position means depends on the report that produced the row.
        """
        _values = self.values[:len(POSITIONAL_FIELDS)]
        _values += ['0'] * (len(POSITIONAL_FIELDS) - len(_values))
        return dict(zip(POSITIONAL_FIELDS, _values))


@dataclass
class ReportResult:
    kind: ReportKind
    headers: list
    rows: list = field(default_factory=list)
    message: Optional[str] = None
    # leading headers that are dimensions; the rest are metric values
    dimension_count: int = 1

    def __post_init__(self):
        if not self.rows and not self.message:
            raise ValueError("an empty ReportResult must carry a message")

    @property
    def data(self) -> list[dict]:
        return [_r.positional() for _r in self.rows]

    def to_dict(self) -> dict:
        _d = {'headers': list(self.headers), 'data': self.data}
        if self.message is not None:
            _d['message'] = self.message
        return _d

    def to_frame(self):
        from .googlepandas import ReportDataFrame
        return ReportDataFrame.from_result(self)
