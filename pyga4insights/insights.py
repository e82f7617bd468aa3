import asyncio
import datetime
import html
import logging
from typing import Callable

from .errors import Ga4InsightsError
from .ga4_wrapper import Ga4ReportClient
from .reports import ReportKind, ReportResult
from .telegram import TelegramSender
from .utils.general_utils import parse_float, parse_int, truncate, percent_change
from . import pgi_logger

TOP_N = 5


def _e(value) -> str:
    return html.escape(str(value), quote=False)


def format_country_report(result: ReportResult) -> str:
    lines = []
    total = 0
    for _row in result.rows[:TOP_N]:
        country, total_users, _new_users, sessions = _row.values
        total += parse_int(total_users)
        lines.append(f"- {_e(country)}: {total_users} users ({sessions} sessions)")
    if len(result.rows) > TOP_N:
        lines.append(f"- <i>... and {len(result.rows) - TOP_N} more countries</i>")
    lines.append(f"<b>Total: {total} users</b>")
    return "\n".join(lines) + "\n"


def format_device_report(result: ReportResult) -> str:
    lines = []
    total = 0
    for _row in result.rows:
        device, sessions = _row.values
        total += parse_int(sessions)
        lines.append(f"- {_e(device)}: {parse_int(sessions)} sessions")
    lines.append(f"<b>Total: {total} sessions</b>")
    return "\n".join(lines) + "\n"


def format_pages_report(result: ReportResult) -> str:
    lines = []
    for _row in result.rows[:TOP_N]:
        page_path, views, duration = _row.values
        lines.append(f"- {_e(truncate(page_path, 30))}: {parse_int(views)} views ({parse_float(duration):.1f}s)")
    if len(result.rows) > TOP_N:
        lines.append(f"- <i>... and {len(result.rows) - TOP_N} more pages</i>")
    return "\n".join(lines) + "\n"


def format_conversions_report(result: ReportResult) -> str:
    lines = []
    for _row in result.rows[:TOP_N]:
        source, conversions = _row.values
        lines.append(f"- {_e(truncate(source, 25))}: {conversions} conversions")
    if len(result.rows) > TOP_N:
        lines.append(f"- <i>... and {len(result.rows) - TOP_N} more sources</i>")
    return "\n".join(lines) + "\n"


def format_comparison_report(result: ReportResult) -> str:
    if len(result.rows) < 2:
        return "- Not enough data to compare\n"

    today = parse_int(result.rows[0].values[1])
    yesterday = parse_int(result.rows[1].values[1])

    change_text = ''
    change = percent_change(today, yesterday)
    if change is not None:
        change_symbol = '▲' if change >= 0 else '▼'
        change_text = f" ({change_symbol} {abs(change):.1f}%)"

    return f"- Today: {today} sessions\n- Yesterday: {yesterday} sessions{change_text}\n"


SECTION_FORMATTERS: dict[ReportKind, Callable[[ReportResult], str]] = {
    ReportKind.USERS_BY_COUNTRY: format_country_report,
    ReportKind.SESSIONS_BY_DEVICE_CATEGORY: format_device_report,
    ReportKind.POPULAR_PAGES_WITH_ENGAGEMENT: format_pages_report,
    ReportKind.CONVERSIONS_BY_SOURCE_MEDIUM: format_conversions_report,
    ReportKind.TODAY_VS_YESTERDAY: format_comparison_report,
}


def format_insights_report(sections: list[tuple[str, ReportResult]],
                           service_name: str,
                           report_date: datetime.date = None) -> str:
    report_date = report_date or datetime.date.today()
    message = "<b>📊 GOOGLE ANALYTICS REPORT</b>\n"
    message += f"<i>{report_date.strftime('%A, %d %B %Y')}</i>\n"
    message += f"<i>Service: {_e(service_name)}</i>\n\n"

    for title, result in sections:
        message += f"<b>{title}</b>\n"
        if result is None or not result.rows:
            message += "- No data\n\n"
            continue

        _formatter = SECTION_FORMATTERS.get(result.kind)
        if _formatter is not None:
            message += _formatter(result)
        message += "\n"

    return message


class InsightsDigest:
    """
    Collects the daily set of GA4 reports, formats them as one HTML message and posts it to Telegram.
    """

    def __init__(self,
                 report_client: Ga4ReportClient,
                 telegram_sender: TelegramSender,
                 today: Callable[[], datetime.date] = datetime.date.today,
                 logger: logging.Logger = None):
        self.report_client = report_client
        self.telegram_sender = telegram_sender
        self.today = today
        self.logger = logger or pgi_logger

    async def collect(self) -> list[tuple[str, ReportResult]]:
        ga4 = self.report_client
        (users_by_country,
         device_sessions,
         top_pages,
         channel_conversions,
         traffic_comparison) = await asyncio.gather(
            ga4.get_users_by_country(),
            ga4.get_sessions_by_device_category('yesterday', 'yesterday'),
            ga4.get_popular_pages_with_engagement('7daysAgo', 'yesterday', 5),
            ga4.get_conversions_by_source_medium('7daysAgo', 'yesterday', 5),
            ga4.compare_today_vs_yesterday('sessions')
        )
        return [
            ('📊 Users by country (yesterday)', users_by_country),
            ('📱 Sessions by device (yesterday)', device_sessions),
            ('📄 Popular pages (last 7 days)', top_pages),
            ('🔄 Conversions by source (last 7 days)', channel_conversions),
            ('📈 Traffic comparison (today vs yesterday)', traffic_comparison),
        ]

    async def send_daily_insights(self) -> bool:
        try:
            self.logger.info(f"{self.__class__.__name__}.send_daily_insights() :: collecting Google Analytics data")
            sections = await self.collect()
        except Ga4InsightsError as e:
            self.logger.error(f"{self.__class__.__name__}.send_daily_insights() :: "
                              f"failed to collect Google Analytics data: {e!r}")
            await self.telegram_sender.send_message(f"❌ Could not collect Google Analytics data: {_e(e.message)}")
            return False

        message = format_insights_report(sections,
                                         service_name=self.report_client.name,
                                         report_date=self.today())
        self.logger.info(f"{self.__class__.__name__}.send_daily_insights() :: sending Google Analytics report "
                         f"via Telegram")
        return await self.telegram_sender.send_message(message)

    async def test_connection(self) -> bool:
        if not await self.telegram_sender.test_connection():
            self.logger.error(f"{self.__class__.__name__}.test_connection() :: cannot connect to Telegram")
            return False

        try:
            await self.report_client.compare_today_vs_yesterday('sessions')
        except Ga4InsightsError as e:
            self.logger.error(f"{self.__class__.__name__}.test_connection() :: "
                              f"cannot connect to Google Analytics: {e!r}")
            return False

        return await self.telegram_sender.send_message('✅ GA Insights connection is working!')
