import logging

import httpx

from . import pgi_logger

TELEGRAM_API_HOST = "https://api.telegram.org"
DEFAULT_TIMEOUT = 15


class TelegramSender:
    """
    Posts messages to one Telegram chat through the Bot API, optionally via a SOCKS5 proxy.
    `chat_id` may be "<chat>_<topic>" to post into a forum topic.

    Neither method raises: failures are logged and reported as False.
    """

    def __init__(self,
                 bot_token: str,
                 chat_id: str,
                 use_proxy: bool = False,
                 proxy_url: str = None,
                 timeout: float = DEFAULT_TIMEOUT,
                 host: str = TELEGRAM_API_HOST,
                 transport: httpx.AsyncBaseTransport = None,
                 logger: logging.Logger = None):
        self.bot_token = bot_token or ''
        self.chat_id = chat_id or ''
        self.use_proxy = use_proxy
        self.proxy_url = proxy_url
        self.timeout = timeout
        self.host = host.rstrip('/')
        self.transport = transport
        self.logger = logger or pgi_logger

        if not self.configured:
            self.logger.warning(f"{self.__class__.__name__} :: Telegram bot token or chat ID not configured")

    @property
    def configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def _url(self, method: str) -> str:
        return f"{self.host}/bot{self.bot_token}/{method}"

    def _client(self) -> httpx.AsyncClient:
        kwargs = dict(timeout=self.timeout,
                      headers={'Content-Type': 'application/json'},
                      transport=self.transport)
        if self.use_proxy and self.proxy_url:
            try:
                _client = httpx.AsyncClient(proxy=self.proxy_url, **kwargs)
                self.logger.info(f"{self.__class__.__name__} :: using SOCKS5 proxy for Telegram: {self.proxy_url}")
                return _client
            except (ImportError, ValueError) as e:
                self.logger.error(f"{self.__class__.__name__} :: failed to configure SOCKS5 proxy: {e!r}")
                self.logger.warning(f"{self.__class__.__name__} :: falling back to direct connection")
        return httpx.AsyncClient(**kwargs)

    def _message_payload(self, message: str, parse_mode: str) -> dict:
        chat_id, _, topic_id = self.chat_id.partition('_')
        payload = {
            'chat_id': chat_id,
            'text': message,
            'parse_mode': parse_mode,
            'disable_web_page_preview': True
        }
        if topic_id:
            payload['message_thread_id'] = topic_id
        return payload

    async def send_message(self, message: str, parse_mode: str = 'HTML') -> bool:
        if not self.configured:
            self.logger.warning(f"{self.__class__.__name__}.send_message() :: Telegram not configured, "
                                f"skipping message")
            return False

        try:
            async with self._client() as client:
                response = await client.post(self._url('sendMessage'),
                                             json=self._message_payload(message, parse_mode))
            body = response.json()
        except httpx.TimeoutException as e:
            self.logger.error(f"{self.__class__.__name__}.send_message() :: request timeout, "
                              f"proxy may be slow: {e!r}")
            return False
        except httpx.ConnectError as e:
            self.logger.error(f"{self.__class__.__name__}.send_message() :: connection refused, "
                              f"check proxy settings: {e!r}")
            return False
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"{self.__class__.__name__}.send_message() :: failed to send Telegram message: {e!r}")
            return False

        if not isinstance(body, dict):
            self.logger.error(f"{self.__class__.__name__}.send_message() :: unexpected Telegram response "
                              f"{response.status_code}: {response.text[:200]}")
            return False
        if body.get('ok'):
            self.logger.info(f"{self.__class__.__name__}.send_message() :: Telegram message sent successfully")
            return True
        self.logger.error(f"{self.__class__.__name__}.send_message() :: Telegram API error "
                          f"{response.status_code}: {body.get('description', body)}")
        return False

    async def test_connection(self) -> bool:
        if not self.bot_token:
            self.logger.warning(f"{self.__class__.__name__}.test_connection() :: no Telegram bot token configured")
            return False

        try:
            async with self._client() as client:
                response = await client.get(self._url('getMe'))
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"{self.__class__.__name__}.test_connection() :: Telegram connection test error: {e!r}")
            return False

        if not isinstance(body, dict):
            self.logger.error(f"{self.__class__.__name__}.test_connection() :: unexpected Telegram response: "
                              f"{response.text[:200]}")
            return False
        if body.get('ok'):
            _bot = body.get('result') if isinstance(body.get('result'), dict) else {}
            self.logger.info(f"{self.__class__.__name__}.test_connection() :: Telegram connection test successful, "
                             f"bot: {_bot.get('first_name')} (@{_bot.get('username')})")
            return True
        self.logger.error(f"{self.__class__.__name__}.test_connection() :: Telegram connection test failed: {body}")
        return False
