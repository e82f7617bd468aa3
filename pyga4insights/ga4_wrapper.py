import json
import logging
from typing import Optional

import httpx

from .auth import TokenIssuer, DEFAULT_TIMEOUT
from .credentials import CredentialStore
from .errors import ReportRequestError
from .reports import DateRange, DimensionFilter, OrderBy, ReportQuery, ReportKind, ReportRow, ReportResult
from .utils.ga4_parser import parse_ga4_response, row_cells
from . import pgi_logger

ANALYTICS_DATA_HOST = "https://analyticsdata.googleapis.com"
SIMPLE_REPORT_LIMIT = 10
DETAILED_REPORT_LIMIT = 50
NO_DATA_MESSAGE = 'No data available'


class Ga4ReportClient:
    """
    The Ga4ReportClient runs reports against a single GA4 property.

    Every request obtains a fresh bearer token from the TokenIssuer (unless the issuer was built with
    `cache_tokens=True`). Failures are logged in detail and raised as ReportRequestError; token failures
    propagate as TokenIssuanceError. Both derive from Ga4InsightsError.

    example implementation:
    ga4 = Ga4ReportClient(property_id='<ga4-property-id>', key_file_path='<path-to-your-key-file>')
    result = await ga4.get_users_by_country()
    """

    def __init__(self,
                 property_id: str,
                 name: str = 'GA4Service',
                 token_issuer: TokenIssuer = None,
                 credential_store: CredentialStore = None,
                 key_file_path: str = None,
                 timeout: float = DEFAULT_TIMEOUT,
                 debug: bool = False,
                 host: str = ANALYTICS_DATA_HOST,
                 transport: httpx.AsyncBaseTransport = None,
                 logger: logging.Logger = None):

        if not property_id:
            raise ValueError('Google Analytics 4 Property ID is required')

        self.property_id: str = str(property_id)
        self.name: str = name
        self.timeout = timeout
        self.debug = debug
        self.host = host.rstrip('/')
        self.transport = transport
        self.logger = logger or pgi_logger

        if token_issuer is None:
            if credential_store is None:
                credential_store = CredentialStore(key_file_path=key_file_path, logger=self.logger)
            token_issuer = TokenIssuer(credential_store=credential_store,
                                       timeout=timeout,
                                       transport=transport,
                                       logger=self.logger)
        self.token_issuer = token_issuer

        self.logger.debug(f"initialising {self.__class__.__name__} object for property {self.property_id}")

    def __repr__(self):
        return f"{self.__class__.__name__}(property_id={self.property_id!r}, name={self.name!r})"

    @property
    def url(self) -> str:
        return f"{self.host}/v1beta/properties/{self.property_id}:runReport"

    # *** Calls to the Data API ***************************************************************

    async def run_report(self, query: ReportQuery) -> dict:
        payload = query.to_payload()
        self.logger.info(f"{self.__class__.__name__}.run_report() :: fetching GA4 report for property "
                         f"{self.property_id}")
        self.logger.debug(f"{self.__class__.__name__}.run_report() :: payload {json.dumps(payload)}")

        token = await self.token_issuer.get_access_token()
        if self.debug:
            self.logger.info(f"{self.__class__.__name__}.run_report() :: access token prefix: {token[:20]}...")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.url,
                    json=payload,
                    headers={'Authorization': f"Bearer {token}", 'Content-Type': 'application/json'}
                )
        except httpx.HTTPError as e:
            self.logger.error(f"{self.__class__.__name__}.run_report() :: request to {self.url} failed: {e!r}")
            raise ReportRequestError() from e

        if response.is_error:
            self._log_http_error(response, payload)
            raise ReportRequestError(status=response.status_code)

        try:
            parsed = parse_ga4_response(response.text)
        except ValueError as e:
            self.logger.error(f"{self.__class__.__name__}.run_report() :: unreadable GA4 response: {e}")
            raise ReportRequestError(status=response.status_code) from e

        self.logger.info(f"{self.__class__.__name__}.run_report() :: retrieved {parsed['row_count']} rows "
                         f"with status code {response.status_code}")
        return parsed

    def _log_http_error(self, response: httpx.Response, payload: dict):
        _name = f"{self.__class__.__name__}.run_report()"
        self.logger.error(f"{_name} :: GA4 API error status: {response.status_code} {response.reason_phrase}")
        self.logger.error(f"{_name} :: GA4 API error details: {response.text}")

        if response.status_code == 403:
            self.logger.error(f"{_name} :: permission denied for property ID: {self.property_id}. "
                              f"Please check if the service account has proper access.")
        elif response.status_code == 400:
            self.logger.error(f"{_name} :: bad request. Please check the payload format: {json.dumps(payload)}")
        elif response.status_code == 401:
            self.logger.error(f"{_name} :: unauthorized. Authentication failed. Please check your credentials.")

    async def get_report(self,
                         date_ranges: list,
                         dimensions: list[str],
                         metrics: list[str],
                         limit: int = SIMPLE_REPORT_LIMIT) -> dict:
        return await self.run_report(ReportQuery(date_ranges=date_ranges,
                                                 dimensions=dimensions,
                                                 metrics=metrics,
                                                 limit=limit))

    async def get_detailed_report(self,
                                  date_ranges: list,
                                  dimensions: list[str],
                                  metrics: list[str],
                                  dimension_filter: Optional[DimensionFilter] = None,
                                  order_bys: Optional[list[OrderBy]] = None,
                                  limit: int = DETAILED_REPORT_LIMIT) -> dict:
        return await self.run_report(ReportQuery(date_ranges=date_ranges,
                                                 dimensions=dimensions,
                                                 metrics=metrics,
                                                 dimension_filter=dimension_filter,
                                                 order_bys=order_bys,
                                                 limit=limit))

    async def query(self, query: ReportQuery, empty_message: str = NO_DATA_MESSAGE) -> ReportResult:
        """run an ad-hoc query and label the columns with the requested dimension and metric names"""
        response = await self.run_report(query)
        return tabulate(kind=ReportKind.RAW,
                        headers=list(query.dimensions) + list(query.metrics),
                        response=response,
                        empty_message=empty_message,
                        dimension_count=len(query.dimensions))

    # *** Audience ****************************************************************************

    async def get_users_by_country(self) -> ReportResult:
        response = await self.get_report(
            date_ranges=[DateRange('yesterday', 'yesterday')],
            dimensions=['country'],
            metrics=['totalUsers', 'newUsers', 'sessions'],
            limit=SIMPLE_REPORT_LIMIT
        )
        return tabulate(kind=ReportKind.USERS_BY_COUNTRY,
                        headers=['Country', 'Total Users', 'New Users', 'Sessions'],
                        response=response,
                        empty_message=NO_DATA_MESSAGE)

    # *** Conversions *************************************************************************

    async def get_top_conversion_events(self,
                                        start_date: str = 'yesterday',
                                        end_date: str = 'yesterday',
                                        limit: int = 10) -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['eventName'],
            metrics=['conversions'],
            order_bys=[OrderBy(metric='conversions', desc=True)],
            limit=limit
        )
        return tabulate(kind=ReportKind.TOP_CONVERSION_EVENTS,
                        headers=['Event Name', 'Conversions'],
                        response=response,
                        empty_message='No conversion events data available')

    async def get_conversions_by_source_medium(self,
                                               start_date: str = 'yesterday',
                                               end_date: str = 'yesterday',
                                               limit: int = 10) -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['sourceMedium'],
            metrics=['conversions'],
            order_bys=[OrderBy(metric='conversions', desc=True)],
            limit=limit
        )
        return tabulate(kind=ReportKind.CONVERSIONS_BY_SOURCE_MEDIUM,
                        headers=['Source/Medium', 'Conversions'],
                        response=response,
                        empty_message='No source/medium conversion data available')

    async def get_conversions_by_device(self,
                                        start_date: str = 'yesterday',
                                        end_date: str = 'yesterday') -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['deviceCategory'],
            metrics=['conversions'],
            order_bys=[OrderBy(metric='conversions', desc=True)]
        )
        return tabulate(kind=ReportKind.CONVERSIONS_BY_DEVICE,
                        headers=['Device Category', 'Conversions'],
                        response=response,
                        empty_message='No device conversion data available')

    # *** User behaviour **********************************************************************

    async def get_popular_pages_with_engagement(self,
                                                start_date: str = 'yesterday',
                                                end_date: str = 'yesterday',
                                                limit: int = 10) -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['pagePath'],
            metrics=['screenPageViews', 'userEngagementDuration'],
            order_bys=[OrderBy(metric='screenPageViews', desc=True)],
            limit=limit
        )
        return tabulate(kind=ReportKind.POPULAR_PAGES_WITH_ENGAGEMENT,
                        headers=['Page Path', 'Page Views', 'Engagement Duration (s)'],
                        response=response,
                        empty_message='No page engagement data available')

    async def get_user_journey_paths(self,
                                     start_date: str = 'yesterday',
                                     end_date: str = 'yesterday',
                                     limit: int = 10) -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['pageReferrer', 'pagePath'],
            metrics=['screenPageViews'],
            order_bys=[OrderBy(metric='screenPageViews', desc=True)],
            limit=limit
        )
        return tabulate(kind=ReportKind.USER_JOURNEY_PATHS,
                        headers=['From Page', 'To Page', 'Page Views'],
                        response=response,
                        empty_message='No user journey data available',
                        dimension_count=2)

    async def get_top_interaction_events(self,
                                         start_date: str = 'yesterday',
                                         end_date: str = 'yesterday',
                                         limit: int = 10) -> ReportResult:
        # everything except page_view
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['eventName'],
            metrics=['eventCount'],
            dimension_filter=DimensionFilter.string('eventName', 'page_view', match_type='EXACT',
                                                    case_sensitive=False, negate=True),
            order_bys=[OrderBy(metric='eventCount', desc=True)],
            limit=limit
        )
        return tabulate(kind=ReportKind.TOP_INTERACTION_EVENTS,
                        headers=['Event Name', 'Event Count'],
                        response=response,
                        empty_message='No interaction events data available')

    # *** Devices and traffic channels ********************************************************

    async def get_sessions_by_device_category(self,
                                              start_date: str = 'yesterday',
                                              end_date: str = 'yesterday') -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['deviceCategory'],
            metrics=['sessions'],
            order_bys=[OrderBy(metric='sessions', desc=True)]
        )
        return tabulate(kind=ReportKind.SESSIONS_BY_DEVICE_CATEGORY,
                        headers=['Device Category', 'Sessions'],
                        response=response,
                        empty_message='No device session data available')

    async def get_sessions_by_default_channel_group(self,
                                                    start_date: str = 'yesterday',
                                                    end_date: str = 'yesterday',
                                                    limit: int = 10) -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['sessionDefaultChannelGroup'],
            metrics=['sessions'],
            order_bys=[OrderBy(metric='sessions', desc=True)],
            limit=limit
        )
        return tabulate(kind=ReportKind.SESSIONS_BY_DEFAULT_CHANNEL_GROUP,
                        headers=['Default Channel Group', 'Sessions'],
                        response=response,
                        empty_message='No channel group data available')

    async def compare_organic_vs_paid(self,
                                      start_date: str = 'yesterday',
                                      end_date: str = 'yesterday') -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['sessionMedium'],
            metrics=['sessions'],
            dimension_filter=DimensionFilter.in_list('sessionMedium', ['organic', 'cpc'])
        )
        return tabulate(kind=ReportKind.ORGANIC_VS_PAID,
                        headers=['Medium', 'Sessions'],
                        response=response,
                        empty_message='No organic vs paid data available')

    # *** Geography and demographics **********************************************************

    async def get_users_by_city(self,
                                start_date: str = 'yesterday',
                                end_date: str = 'yesterday',
                                limit: int = 10) -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['city'],
            metrics=['activeUsers'],
            order_bys=[OrderBy(metric='activeUsers', desc=True)],
            limit=limit
        )
        return tabulate(kind=ReportKind.USERS_BY_CITY,
                        headers=['City', 'Active Users'],
                        response=response,
                        empty_message='No city data available')

    async def get_users_by_age_bracket(self,
                                       start_date: str = 'yesterday',
                                       end_date: str = 'yesterday') -> ReportResult:
        # only populated when Google Signals is enabled on the property
        response = await self.get_detailed_report(
            date_ranges=[DateRange(start_date, end_date)],
            dimensions=['userAgeBracket'],
            metrics=['activeUsers'],
            order_bys=[OrderBy(metric='activeUsers', desc=True)]
        )
        return tabulate(kind=ReportKind.USERS_BY_AGE_BRACKET,
                        headers=['Age Bracket', 'Active Users'],
                        response=response,
                        empty_message='No age bracket data available')

    # *** Time based comparison ***************************************************************

    async def compare_today_vs_yesterday(self, metric: str = 'sessions') -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange('today', 'today'), DateRange('yesterday', 'yesterday')],
            dimensions=[],
            metrics=[metric]
        )
        # one value per date range, both read from the first row
        _first_metrics = response['rows'][0][1] if response['rows'] else []
        today, yesterday = row_cells(([], _first_metrics), dimension_count=0, metric_count=2)
        headers = ['Period', metric]
        return ReportResult(
            kind=ReportKind.TODAY_VS_YESTERDAY,
            headers=headers,
            rows=[ReportRow.from_values(headers, ['Today', today]),
                  ReportRow.from_values(headers, ['Yesterday', yesterday])]
        )

    async def compare_this_week_vs_last_week(self,
                                             dimension: str = 'sessionDefaultChannelGroup',
                                             metric: str = 'sessions') -> ReportResult:
        response = await self.get_detailed_report(
            date_ranges=[DateRange('14daysAgo', '8daysAgo'), DateRange('7daysAgo', 'yesterday')],
            dimensions=[dimension],
            metrics=[metric],
            order_bys=[OrderBy(metric=metric, desc=True)]
        )
        return tabulate(kind=ReportKind.THIS_WEEK_VS_LAST_WEEK,
                        headers=[dimension, 'Last Week', 'This Week'],
                        response=response,
                        empty_message='No comparison data available')


def tabulate(kind: ReportKind,
             headers: list[str],
             response: dict,
             empty_message: str,
             dimension_count: int = 1) -> ReportResult:
    """
    Map parsed response rows onto `headers`: the first `dimension_count` headers take dimension values
    (default 'Unknown'), the remaining headers take metric values in order (default '0').
    """
    rows = response.get('rows') or []
    if len(rows) == 0:
        return ReportResult(kind=kind, headers=headers, rows=[], message=empty_message,
                            dimension_count=dimension_count)

    metric_count = len(headers) - dimension_count
    return ReportResult(
        kind=kind,
        headers=headers,
        rows=[ReportRow.from_values(headers, row_cells(_r, dimension_count, metric_count)) for _r in rows],
        dimension_count=dimension_count
    )
