"""Shared fixtures: a throwaway RSA service account key and a fake Google/Telegram HTTP backend."""

import json

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from pyga4insights.credentials import CredentialStore
from pyga4insights.ga4_wrapper import Ga4ReportClient

PROPERTY_ID = "123456789"
ACCESS_TOKEN = "ya29.test-access-token-0123456789"


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key):
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf8")


@pytest.fixture
def service_account_info(private_key_pem):
    """The six per-deployment fields of a service account key."""
    return {
        "project_id": "test-project",
        "private_key_id": "abc123keyid",
        "private_key": private_key_pem,
        "client_email": "ga4-reader@test-project.iam.gserviceaccount.com",
        "client_id": "117680020391704302024",
        "client_x509_cert_url": "https://www.googleapis.com/robot/v1/metadata/x509/ga4-reader",
    }


@pytest.fixture
def credential_store(service_account_info):
    return CredentialStore(service_account_info=service_account_info)


class FakeBackend:
    """Answers token, runReport and Telegram calls; records every request it sees."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.token_status = 200
        self.token_json = {"access_token": ACCESS_TOKEN, "expires_in": 3599, "token_type": "Bearer"}
        self.report_status = 200
        self.report_json = {}
        self.report_handler = None
        self.telegram_json = {"ok": True, "result": {"first_name": "Insights", "username": "insights_bot"}}
        self.telegram_status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "oauth2.googleapis.com":
            return httpx.Response(self.token_status, json=self.token_json)
        if host == "analyticsdata.googleapis.com":
            if self.report_handler is not None:
                return self.report_handler(request)
            return httpx.Response(self.report_status, json=self.report_json)
        if host == "api.telegram.org":
            return httpx.Response(self.telegram_status, json=self.telegram_json)
        return httpx.Response(404, json={"error": "unexpected host"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [_r for _r in self.requests if _r.url.host == host]

    @property
    def report_payloads(self) -> list[dict]:
        return [json.loads(_r.content) for _r in self.requests_to("analyticsdata.googleapis.com")]

    @property
    def telegram_payloads(self) -> list[dict]:
        return [json.loads(_r.content) for _r in self.requests_to("api.telegram.org") if _r.content]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def ga4(credential_store, backend):
    return Ga4ReportClient(property_id=PROPERTY_ID,
                           name="TestService",
                           credential_store=credential_store,
                           transport=backend.transport)


def report_row(dimensions: list[str], metrics: list[str]) -> dict:
    return {
        "dimensionValues": [{"value": _d} for _d in dimensions],
        "metricValues": [{"value": _m} for _m in metrics],
    }
