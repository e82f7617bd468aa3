import json

from google.analytics.data_v1beta.types import RunReportResponse  # pip install google-analytics-data
from google.protobuf.json_format import ParseError

DIMENSION_DEFAULT = 'Unknown'
METRIC_DEFAULT = '0'


def parse_ga4_response(payload: str | bytes | dict) -> dict:
    """
    Parse the JSON body of a `runReport` REST call. Raises ValueError if the body is not a RunReportResponse.
    A missing `rows` field is the same as an empty one.
    """
    if isinstance(payload, dict):
        payload = json.dumps(payload)
    elif isinstance(payload, bytes):
        payload = payload.decode('utf8')

    try:
        response = RunReportResponse.from_json(payload, ignore_unknown_fields=True)
    except ParseError as e:
        raise ValueError(f"not a RunReportResponse: {e}") from e

    dimension_headers = [_.name for _ in response.dimension_headers]
    metric_headers = [_.name for _ in response.metric_headers]
    rows = [
        (
            [_dv.value for _dv in _r.dimension_values],
            [_mv.value for _mv in _r.metric_values]
        ) for _r in response.rows
    ]

    return {
        'response_type': 'GA4',
        'dimension_headers': dimension_headers,
        'metric_headers': metric_headers,
        'meta_row_count': response.row_count,
        'currency_code': response.metadata.currency_code,
        'time_zone': response.metadata.time_zone,
        'row_count': len(rows),
        'rows': rows
    }


def fill_values(values: list[str], count: int, default: str) -> list[str]:
    """first `count` values, with absent or empty ones replaced by `default`"""
    return [values[_i] if _i < len(values) and values[_i] else default for _i in range(count)]


def row_cells(row: tuple[list[str], list[str]], dimension_count: int, metric_count: int) -> list[str]:
    dimension_values, metric_values = row
    return fill_values(dimension_values, dimension_count, DIMENSION_DEFAULT) + \
        fill_values(metric_values, metric_count, METRIC_DEFAULT)
