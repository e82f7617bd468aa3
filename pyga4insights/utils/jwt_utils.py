import base64
import json
from typing import Tuple

from google.auth import crypt  # pip install --upgrade google-auth


def b64url_encode(data: bytes) -> str:
    """base64 with `+` -> `-`, `/` -> `_` and the trailing `=` padding stripped (RFC 7515 section 2)"""
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')


def b64url_decode(data: str | bytes) -> bytes:
    if isinstance(data, str):
        data = data.encode('ascii')
    return base64.urlsafe_b64decode(data + b'=' * (-len(data) % 4))


def encode_segment(obj: dict) -> str:
    # compact separators, non-ASCII written as raw UTF-8
    return b64url_encode(json.dumps(obj, separators=(',', ':'), ensure_ascii=False).encode('utf8'))


def decode_segment(segment: str) -> dict:
    return json.loads(b64url_decode(segment).decode('utf8'))


def jwt_header(key_id: str) -> dict:
    return {'alg': 'RS256', 'typ': 'JWT', 'kid': key_id}


def jwt_claims(client_email: str, audience: str, scope: str, issued_at: int, lifetime: int) -> dict:
    return {
        'iss': client_email,
        'sub': client_email,
        'aud': audience,
        'iat': issued_at,
        'exp': issued_at + lifetime,
        'scope': scope
    }


def encode_jwt(header: dict, claims: dict, signer: crypt.Signer) -> str:
    signing_input = f"{encode_segment(header)}.{encode_segment(claims)}"
    signature = signer.sign(signing_input.encode('ascii'))
    return f"{signing_input}.{b64url_encode(signature)}"


def split_jwt(token: str) -> Tuple[dict, dict, bytes, bytes]:
    """returns (header, claims, signing_input, signature)"""
    if token.count('.') != 2:
        raise ValueError("a JWT must have exactly three segments")
    _header, _claims, _signature = token.split('.')
    return (decode_segment(_header),
            decode_segment(_claims),
            f"{_header}.{_claims}".encode('ascii'),
            b64url_decode(_signature))
