import pandas as pd

from pyga4insights.googlepandas import ReportDataFrame
from pyga4insights.reports import ReportKind, ReportRow, ReportResult


def _pages_result() -> ReportResult:
    headers = ["Page Path", "Page Views", "Engagement Duration (s)"]
    return ReportResult(kind=ReportKind.POPULAR_PAGES_WITH_ENGAGEMENT,
                        headers=headers,
                        rows=[ReportRow.from_values(headers, ["/", "120", "431.5"]),
                              ReportRow.from_values(headers, ["/pricing", "44", "n/a"])])


class TestReportDataFrame:

    def test_from_result(self):
        df = _pages_result().to_frame()
        assert isinstance(df, ReportDataFrame)
        assert list(df.columns) == ["Page Path", "Page Views", "Engagement Duration (s)"]
        assert df.shape == (2, 3)
        assert df.kind is ReportKind.POPULAR_PAGES_WITH_ENGAGEMENT
        assert df.dimension_columns == ["Page Path"]
        assert df.metric_columns == ["Page Views", "Engagement Duration (s)"]
        assert df.iloc[0]["Page Views"] == "120"

    def test_numeric(self):
        df = _pages_result().to_frame().numeric()
        assert isinstance(df, ReportDataFrame)
        assert df["Page Views"].tolist() == [120, 44]
        assert df["Engagement Duration (s)"].iloc[0] == 431.5
        assert pd.isna(df["Engagement Duration (s)"].iloc[1])
        assert df["Page Path"].tolist() == ["/", "/pricing"]
        assert df.kind is ReportKind.POPULAR_PAGES_WITH_ENGAGEMENT

    def test_empty_result(self):
        result = ReportResult(kind=ReportKind.USERS_BY_CITY, headers=["City", "Active Users"],
                              message="No city data available")
        df = result.to_frame()
        assert df.empty
        assert list(df.columns) == ["City", "Active Users"]
        assert df.message == "No city data available"
