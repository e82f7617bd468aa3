import time
import logging
from dataclasses import dataclass
from typing import Callable

import httpx
from google.auth import crypt  # pip install --upgrade google-auth

from .credentials import CredentialStore, ServiceAccountCredential
from .errors import CredentialLoadError, TokenIssuanceError
from .utils import jwt_utils
from . import pgi_logger

ANALYTICS_READONLY_SCOPE = 'https://www.googleapis.com/auth/analytics.readonly'
JWT_BEARER_GRANT_TYPE = 'urn:ietf:params:oauth:grant-type:jwt-bearer'
TOKEN_LIFETIME_SECONDS = 3600
DEFAULT_TIMEOUT = 30
DEFAULT_EXPIRY_SKEW = 60


@dataclass
class _CachedToken:
    access_token: str
    expires_at: float


class TokenIssuer:
    """
    Exchanges a self-signed JWT assertion for an OAuth2 bearer token (the "JWT bearer" grant).

    By default a fresh token is minted for every call. Pass `cache_tokens=True` to reuse a token until
    `expiry_skew` seconds before the expiry the token endpoint reports.
    """

    def __init__(self,
                 credential_store: CredentialStore,
                 scope: str = ANALYTICS_READONLY_SCOPE,
                 timeout: float = DEFAULT_TIMEOUT,
                 cache_tokens: bool = False,
                 expiry_skew: float = DEFAULT_EXPIRY_SKEW,
                 clock: Callable[[], float] = time.time,
                 transport: httpx.AsyncBaseTransport = None,
                 logger: logging.Logger = None):
        self.credential_store = credential_store
        self.scope = scope
        self.timeout = timeout
        self.cache_tokens = cache_tokens
        self.expiry_skew = expiry_skew
        self.clock = clock
        self.transport = transport
        self.logger = logger or pgi_logger

        self._cache: dict[tuple[str, str], _CachedToken] = dict()

    def build_assertion(self, credential: ServiceAccountCredential, issued_at: int = None) -> str:
        if issued_at is None:
            issued_at = int(self.clock())
        header = jwt_utils.jwt_header(key_id=credential.private_key_id)
        claims = jwt_utils.jwt_claims(client_email=credential.client_email,
                                      audience=credential.token_uri,
                                      scope=self.scope,
                                      issued_at=issued_at,
                                      lifetime=TOKEN_LIFETIME_SECONDS)
        signer = crypt.RSASigner.from_string(credential.private_key, key_id=credential.private_key_id)
        return jwt_utils.encode_jwt(header=header, claims=claims, signer=signer)

    async def get_access_token(self) -> str:
        try:
            credential = self.credential_store.load()
        except CredentialLoadError as e:
            self.logger.error(f"{self.__class__.__name__}.get_access_token() :: no service account key: {e!r}")
            raise TokenIssuanceError() from e

        cache_key = (credential.client_email, credential.private_key_id)
        if self.cache_tokens:
            _cached = self._cache.get(cache_key)
            if _cached is not None and self.clock() < _cached.expires_at:
                self.logger.debug(f"{self.__class__.__name__}.get_access_token() :: reusing cached token")
                return _cached.access_token

        issued_at = int(self.clock())
        try:
            assertion = self.build_assertion(credential, issued_at=issued_at)
        except Exception as e:
            self.logger.error(f"{self.__class__.__name__}.get_access_token() :: "
                              f"could not sign JWT assertion with key {credential.private_key_id}: {e!r}")
            raise TokenIssuanceError() from e

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    credential.token_uri,
                    json={'grant_type': JWT_BEARER_GRANT_TYPE, 'assertion': assertion},
                    headers={'Content-Type': 'application/json'}
                )
        except httpx.HTTPError as e:
            self.logger.error(f"{self.__class__.__name__}.get_access_token() :: "
                              f"token request to {credential.token_uri} failed: {e!r}")
            raise TokenIssuanceError() from e

        if response.is_error:
            self.logger.error(f"{self.__class__.__name__}.get_access_token() :: token endpoint returned "
                              f"{response.status_code} {response.reason_phrase}: {response.text}")
            raise TokenIssuanceError(status=response.status_code)

        try:
            token_response = response.json()
            access_token = token_response['access_token']
            expires_in = float(token_response.get('expires_in', TOKEN_LIFETIME_SECONDS))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            self.logger.error(f"{self.__class__.__name__}.get_access_token() :: "
                              f"unreadable token response: {response.text[:200]}")
            raise TokenIssuanceError(status=response.status_code) from e

        if self.cache_tokens:
            self._cache[cache_key] = _CachedToken(
                access_token=access_token,
                expires_at=issued_at + expires_in - self.expiry_skew
            )

        return access_token
