import base64
import os

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from google.auth import crypt

from pyga4insights.utils import jwt_utils


class TestBase64Url:

    @pytest.mark.parametrize("data", [b"", b"f", b"fo", b"foo", b"\xfb\xff\xbf", b"\xff\xfe\xfd\xfc", os.urandom(97)])
    def test_url_alphabet_without_padding(self, data):
        encoded = jwt_utils.b64url_encode(data)
        assert "+" not in encoded
        assert "/" not in encoded
        assert "=" not in encoded
        assert encoded == base64.b64encode(data).decode().replace("+", "-").replace("/", "_").rstrip("=")
        assert jwt_utils.b64url_decode(encoded) == data

    def test_segments_use_compact_json(self):
        segment = jwt_utils.encode_segment({"alg": "RS256", "typ": "JWT"})
        assert jwt_utils.b64url_decode(segment) == b'{"alg":"RS256","typ":"JWT"}'

    def test_segments_keep_non_ascii_as_utf8(self):
        segment = jwt_utils.encode_segment({"sub": "müller@example.com"})
        assert jwt_utils.b64url_decode(segment) == '{"sub":"müller@example.com"}'.encode("utf8")
        assert jwt_utils.decode_segment(segment) == {"sub": "müller@example.com"}


class TestJwt:

    def test_claims(self):
        claims = jwt_utils.jwt_claims(client_email="sa@example.iam.gserviceaccount.com",
                                      audience="https://oauth2.googleapis.com/token",
                                      scope="https://www.googleapis.com/auth/analytics.readonly",
                                      issued_at=1_700_000_000,
                                      lifetime=3600)
        assert claims == {
            "iss": "sa@example.iam.gserviceaccount.com",
            "sub": "sa@example.iam.gserviceaccount.com",
            "aud": "https://oauth2.googleapis.com/token",
            "iat": 1_700_000_000,
            "exp": 1_700_003_600,
            "scope": "https://www.googleapis.com/auth/analytics.readonly",
        }

    def test_encode_and_verify(self, private_key_pem, rsa_private_key):
        signer = crypt.RSASigner.from_string(private_key_pem, key_id="kid-1")
        header = jwt_utils.jwt_header("kid-1")
        claims = {"iss": "a", "iat": 1, "exp": 2}

        token = jwt_utils.encode_jwt(header, claims, signer)
        decoded_header, decoded_claims, signing_input, signature = jwt_utils.split_jwt(token)

        assert decoded_header == {"alg": "RS256", "typ": "JWT", "kid": "kid-1"}
        assert decoded_claims == claims
        rsa_private_key.public_key().verify(signature, signing_input, padding.PKCS1v15(), hashes.SHA256())

    def test_tampered_claims_fail_verification(self, private_key_pem, rsa_private_key):
        signer = crypt.RSASigner.from_string(private_key_pem, key_id="kid-1")
        token = jwt_utils.encode_jwt(jwt_utils.jwt_header("kid-1"), {"iss": "a"}, signer)
        _header, _claims, _signature = token.split(".")
        forged = f"{_header}.{jwt_utils.encode_segment({'iss': 'b'})}.{_signature}"

        _, _, signing_input, signature = jwt_utils.split_jwt(forged)
        with pytest.raises(InvalidSignature):
            rsa_private_key.public_key().verify(signature, signing_input, padding.PKCS1v15(), hashes.SHA256())

    @pytest.mark.parametrize("token", ["abc", "a.b", "a.b.c.d"])
    def test_split_rejects_wrong_segment_count(self, token):
        with pytest.raises(ValueError):
            jwt_utils.split_jwt(token)
