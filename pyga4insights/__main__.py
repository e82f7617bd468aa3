"""
Command line entry point.

    python -m pyga4insights report users_by_country
    python -m pyga4insights report popular_pages_with_engagement --start 7daysAgo --end yesterday --limit 5
    python -m pyga4insights digest
    python -m pyga4insights test-connection
"""
import argparse
import asyncio
import inspect
import json
import sys

from pydantic import ValidationError

from .client import InsightsClient
from .config import Settings
from .errors import Ga4InsightsError
from .ga4_wrapper import Ga4ReportClient
from .utils.general_utils import setup_logging
from . import pgi_logger

REPORT_METHODS = {
    'users_by_country': Ga4ReportClient.get_users_by_country,
    'top_conversion_events': Ga4ReportClient.get_top_conversion_events,
    'conversions_by_source_medium': Ga4ReportClient.get_conversions_by_source_medium,
    'conversions_by_device': Ga4ReportClient.get_conversions_by_device,
    'popular_pages_with_engagement': Ga4ReportClient.get_popular_pages_with_engagement,
    'user_journey_paths': Ga4ReportClient.get_user_journey_paths,
    'top_interaction_events': Ga4ReportClient.get_top_interaction_events,
    'sessions_by_device_category': Ga4ReportClient.get_sessions_by_device_category,
    'sessions_by_default_channel_group': Ga4ReportClient.get_sessions_by_default_channel_group,
    'organic_vs_paid': Ga4ReportClient.compare_organic_vs_paid,
    'users_by_city': Ga4ReportClient.get_users_by_city,
    'users_by_age_bracket': Ga4ReportClient.get_users_by_age_bracket,
    'today_vs_yesterday': Ga4ReportClient.compare_today_vs_yesterday,
    'this_week_vs_last_week': Ga4ReportClient.compare_this_week_vs_last_week,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='pyga4insights',
                                     description='Google Analytics 4 reports and Telegram digests')
    parser.add_argument('--property-id', help='GA4 property id (default: GA4_PROPERTY_ID)')
    parser.add_argument('--key-file', help='service account JSON key file (default: GA4_KEY_FILE)')
    parser.add_argument('--log-level', help='log level (default: LOG_LEVEL or INFO)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    report_parser = subparsers.add_parser('report', help='print one report as JSON')
    report_parser.add_argument('name', choices=sorted(REPORT_METHODS))
    report_parser.add_argument('--start', dest='start_date', help='start date, e.g. 2024-01-31 or 7daysAgo')
    report_parser.add_argument('--end', dest='end_date', help='end date, e.g. yesterday')
    report_parser.add_argument('--limit', type=int, help='row limit')
    report_parser.add_argument('--metric', help='metric for the comparison reports')
    report_parser.add_argument('--dimension', help='dimension for this_week_vs_last_week')

    subparsers.add_parser('digest', help='send the daily digest to Telegram')
    subparsers.add_parser('test-connection', help='check Telegram and Google Analytics access')
    return parser


def report_kwargs(method, args: argparse.Namespace) -> dict:
    """the options given on the command line that `method` accepts"""
    accepted = inspect.signature(method).parameters
    return {_k: getattr(args, _k) for _k in ('start_date', 'end_date', 'limit', 'metric', 'dimension')
            if _k in accepted and getattr(args, _k, None) is not None}


async def run(args: argparse.Namespace, insights_client: InsightsClient) -> int:
    if args.command == 'report':
        ga4 = insights_client.report_client(property_id=args.property_id)
        method = REPORT_METHODS[args.name]
        result = await method(ga4, **report_kwargs(method, args))
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    digest = insights_client.digest(property_id=args.property_id)
    if args.command == 'digest':
        ok = await digest.send_daily_insights()
    else:
        ok = await digest.test_connection()
    pgi_logger.info(f"{args.command}: {'success' if ok else 'failed'}")
    return 0 if ok else 1


def main(argv: list[str] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging(args.log_level or 'INFO')
        pgi_logger.error(f"invalid configuration: {e}")
        return 1
    setup_logging(args.log_level or settings.log_level)

    try:
        insights_client = InsightsClient.build(key_file_path=args.key_file or settings.ga4_key_file,
                                               settings=settings)
        return asyncio.run(run(args, insights_client))
    except (Ga4InsightsError, ValueError) as e:
        pgi_logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
