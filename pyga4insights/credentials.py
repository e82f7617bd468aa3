import os
import json
import logging
from dataclasses import dataclass, field
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import CredentialLoadError
from . import pgi_logger

DEFAULT_KEY_FILE_PATH = os.path.join(os.path.dirname(__file__), 'service_account.json')

TOKEN_URI = "https://oauth2.googleapis.com/token"

# Always merged over whatever the key source contains.
FIXED_CREDENTIAL_FIELDS = {
    'type': "service_account",
    'auth_uri': "https://accounts.google.com/o/oauth2/auth",
    'auth_provider_x509_cert_url': "https://www.googleapis.com/oauth2/v1/certs",
    'token_uri': TOKEN_URI,
    'universe_domain': "googleapis.com",
}


class ServiceAccountCredential(BaseModel):
    """
    A GCP service account JSON key as downloaded from the console.
    Only `project_id`, `private_key_id`, `private_key`, `client_email`, `client_id` and `client_x509_cert_url`
    vary per deployment; the rest are the fixed OAuth endpoints in FIXED_CREDENTIAL_FIELDS.
    """
    model_config = ConfigDict(extra='ignore', frozen=True)

    type: Literal["service_account"]
    project_id: str
    private_key_id: str
    private_key: str
    client_email: str
    client_id: str
    auth_uri: str
    token_uri: str
    auth_provider_x509_cert_url: str
    client_x509_cert_url: str
    universe_domain: str

    @field_validator('client_email')
    @classmethod
    def _check_client_email(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("client_email must not be empty")
        return v.strip()

    @field_validator('private_key')
    @classmethod
    def _check_private_key(cls, v: str) -> str:
        # keys pasted through env vars often arrive with literal "\n"
        v = v.replace('\\n', '\n')
        if '-----BEGIN' not in v or 'PRIVATE KEY-----' not in v:
            raise ValueError("private_key must be a PEM encoded private key")
        return v

    @classmethod
    def from_info(cls, info: dict) -> "ServiceAccountCredential":
        return cls(**{**info, **FIXED_CREDENTIAL_FIELDS})


@dataclass(frozen=True)
class FileCredential:
    path: str


@dataclass(frozen=True)
class InlineCredential:
    info: dict = field(hash=False)


CredentialSource = Union[FileCredential, InlineCredential]


def resolve_credential_source(key_file_path: str = None, service_account_info: dict = None) -> CredentialSource:
    if service_account_info is not None:
        return InlineCredential(info=dict(service_account_info))
    return FileCredential(path=key_file_path or DEFAULT_KEY_FILE_PATH)


class CredentialStore:
    """
    Holds the service account key for one client. The key is read the first time it is needed and then kept for
    the lifetime of the store; build a new store to pick up a changed key.

    example implementation:
    store = CredentialStore(key_file_path='<path-to-your-key-file>')
    credential = store.load()
    """

    def __init__(self,
                 key_file_path: str = None,
                 service_account_info: dict = None,
                 logger: logging.Logger = None):
        self.source: CredentialSource = resolve_credential_source(key_file_path=key_file_path,
                                                                  service_account_info=service_account_info)
        self.logger = logger or pgi_logger
        self._credential: ServiceAccountCredential | None = None

    @classmethod
    def from_json(cls, api_key: str | bytes | dict, logger: logging.Logger = None):
        if isinstance(api_key, (bytes, str)):
            try:
                api_key = json.loads(api_key)
            except ValueError as e:
                (logger or pgi_logger).error(f"{cls.__name__}.from_json() :: key is not valid json: {e!r}")
                raise CredentialLoadError() from e
        if not isinstance(api_key, dict):
            raise CredentialLoadError()
        return cls(service_account_info=api_key, logger=logger)

    def load(self) -> ServiceAccountCredential:
        if self._credential is not None:
            return self._credential

        try:
            info = self._read_source()
            self._credential = ServiceAccountCredential.from_info(info)
        except (OSError, ValueError, TypeError) as e:
            if isinstance(e, ValidationError):
                _reason = "; ".join(f"{'.'.join(str(_l) for _l in _err['loc'])}: {_err['msg']}" for _err in e.errors())
            else:
                _reason = repr(e)
            self.logger.error(f"{self.__class__.__name__}.load() :: error loading Google service account key "
                              f"from {self._describe_source()}: {_reason}")
            raise CredentialLoadError() from e

        self.logger.info(f"{self.__class__.__name__}.load() :: loaded Google service account key "
                         f"from {self._describe_source()}")
        return self._credential

    def _read_source(self) -> dict:
        if isinstance(self.source, InlineCredential):
            return self.source.info

        with open(self.source.path, 'rb') as _file:
            info = json.loads(_file.read().decode('utf8'))
        if not isinstance(info, dict):
            raise TypeError(f"expected a json object in {self.source.path}, got {type(info).__name__}")
        return info

    def _describe_source(self) -> str:
        if isinstance(self.source, InlineCredential):
            return "object"
        return f"file {self.source.path}"

    def __repr__(self):
        return f"{self.__class__.__name__}(source={self._describe_source()}, loaded={self._credential is not None})"
