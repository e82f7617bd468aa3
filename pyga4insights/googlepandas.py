import datetime

import pandas as pd

from .reports import ReportKind, ReportResult


class ReportDataFrame(pd.DataFrame):
    """
    Subclass of pandas.DataFrame for a tabulated GA4 report.
    Columns are the report headers, cells are the values exactly as the Data API returned them (strings).

    In addition to pandas DataFrame functionality, the ReportDataFrame has additional metadata attributes:
        kind:            the ReportKind of the report that produced it
        headers:         the report headers, in order
        message:         the "no data" message of an empty report
        dimension_count: how many leading columns are dimensions; the rest are metrics
        time_obtained:   UTC timestamp of when the frame was built
    """

    _metadata = ["kind",
                 "headers",
                 "message",
                 "dimension_count",
                 "time_obtained"]

    def __init__(self, df_input=None,
                 kind: ReportKind = ReportKind.RAW,
                 headers: list[str] = None,
                 message: str | None = None,
                 dimension_count: int = 1,
                 time_obtained: datetime.datetime = None):

        super().__init__(df_input, columns=headers)

        self.kind = kind
        self.headers = list(self.columns) if headers is None else list(headers)
        self.message = message
        self.dimension_count = dimension_count
        self.time_obtained = time_obtained or datetime.datetime.now(tz=datetime.timezone.utc)

    @classmethod
    def from_result(cls, result: ReportResult):
        rows = [_r.values for _r in result.rows]
        return cls(df_input=rows or None,
                   kind=result.kind,
                   headers=result.headers,
                   message=result.message,
                   dimension_count=result.dimension_count)

    @property
    def dimension_columns(self) -> list[str]:
        return self.headers[:self.dimension_count]

    @property
    def metric_columns(self) -> list[str]:
        return self.headers[self.dimension_count:]

    def numeric(self):
        """copy with the metric columns converted to numbers; unparseable values become NaN"""
        _df = pd.DataFrame(self, copy=True)
        for _c in self.metric_columns:
            _df[_c] = pd.to_numeric(_df[_c], errors='coerce')
        return self.__class__(df_input=_df,
                              kind=self.kind,
                              headers=self.headers,
                              message=self.message,
                              dimension_count=self.dimension_count,
                              time_obtained=self.time_obtained)
