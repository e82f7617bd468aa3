import logging

import httpx

from .auth import TokenIssuer
from .config import Settings
from .credentials import CredentialStore
from .ga4_wrapper import Ga4ReportClient
from .insights import InsightsDigest
from .telegram import TelegramSender
from . import pgi_logger


class InsightsClient:
    """
    The InsightsClient holds the credentials for a project
    which can then be used to create report clients, a Telegram sender and the daily digest.

    example implementation:
    from pyga4insights.client import InsightsClient
    insights_client = InsightsClient.build(key_file_path='<path-to-your-key-file>')
    """

    def __init__(self,
                 credential_store: CredentialStore,
                 settings: Settings = None,
                 cache_tokens: bool = False,
                 transport: httpx.AsyncBaseTransport = None,
                 logger: logging.Logger = None):
        self.credential_store = credential_store
        self.settings = settings or Settings()
        self.transport = transport
        self.logger = logger or pgi_logger
        self.token_issuer = TokenIssuer(credential_store=credential_store,
                                        timeout=self.settings.ga4_timeout,
                                        cache_tokens=cache_tokens,
                                        transport=transport,
                                        logger=self.logger)

    @classmethod
    def build(cls,
              api_key: str | bytes | dict = None,
              key_file_path: str = None,
              settings: Settings = None,
              **kwargs):
        logger = kwargs.get('logger')
        if api_key is not None:
            credential_store = CredentialStore.from_json(api_key, logger=logger)
        else:
            credential_store = CredentialStore(key_file_path=key_file_path, logger=logger)
        return cls(credential_store=credential_store, settings=settings, **kwargs)

    @classmethod
    def from_settings(cls, settings: Settings = None, **kwargs):
        settings = settings or Settings()
        return cls.build(key_file_path=settings.ga4_key_file, settings=settings, **kwargs)

    def report_client(self, property_id: str = None, name: str = None) -> Ga4ReportClient:
        """
        @param property_id: the GA4 property id, e.g. "123456789". Falls back to GA4_PROPERTY_ID.
        @param name: label used in the digest header. Falls back to GA4_SERVICE_NAME.
        @returns: Ga4ReportClient object.
        """
        return Ga4ReportClient(
            property_id=property_id or self.settings.ga4_property_id,
            name=name or self.settings.ga4_service_name,
            token_issuer=self.token_issuer,
            timeout=self.settings.ga4_timeout,
            debug=self.settings.ga4_debug,
            transport=self.transport,
            logger=self.logger
        )

    def telegram_sender(self) -> TelegramSender:
        return TelegramSender(
            bot_token=self.settings.telegram_bot_token,
            chat_id=self.settings.telegram_chat_id,
            use_proxy=self.settings.use_proxy,
            proxy_url=self.settings.socks5_proxy_url,
            timeout=self.settings.telegram_timeout,
            transport=self.transport,
            logger=self.logger
        )

    def digest(self, property_id: str = None, name: str = None) -> InsightsDigest:
        return InsightsDigest(report_client=self.report_client(property_id=property_id, name=name),
                              telegram_sender=self.telegram_sender(),
                              logger=self.logger)

    def __bool__(self):
        return self.credential_store is not None

    def __repr__(self):
        _s = 'PyGA4Insights Client object:\n'
        _s += f" - credential_store: {self.credential_store!r}\n"
        _s += f" - ga4_property_id: {self.settings.ga4_property_id}\n"
        _s += f" - telegram configured: {bool(self.settings.telegram_bot_token and self.settings.telegram_chat_id)}\n"
        return _s
