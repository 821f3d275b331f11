"""
Request signing for the Batch service.

SharedKeyAuth implements the Batch shared-key scheme: an HMAC-SHA256 over a
canonical description of the request, keyed with the account key.
"""

import base64
import hashlib
import hmac
from email.utils import formatdate
from typing import List
from urllib.parse import parse_qsl, unquote, urlparse

from requests.auth import AuthBase
from requests.models import PreparedRequest

# Standard headers that take part in the signature, in signing order
_SIGNED_HEADERS = [
    "Content-Encoding",
    "Content-Language",
    "Content-Length",
    "Content-MD5",
    "Content-Type",
    "Date",
    "If-Modified-Since",
    "If-Match",
    "If-None-Match",
    "If-Unmodified-Since",
    "Range",
]


def generate_signature(string_to_sign: str, account_key: str) -> str:
    """
    Sign a canonical request string.

    Args:
        string_to_sign: Canonical request description
        account_key: Base64-encoded account key

    Returns:
        Base64-encoded HMAC-SHA256 signature
    """
    digest = hmac.new(
        base64.b64decode(account_key),
        string_to_sign.encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("utf-8")


def _canonicalized_headers(request: PreparedRequest) -> List[str]:
    ocp = sorted(
        (name.lower(), value.strip())
        for name, value in request.headers.items()
        if name.lower().startswith("ocp-")
    )
    return [f"{name}:{value}" for name, value in ocp]


def _canonicalized_resource(account_name: str, url: str) -> str:
    parsed = urlparse(url)
    resource = f"/{account_name}{unquote(parsed.path) or '/'}"
    params = {}
    for name, value in parse_qsl(parsed.query, keep_blank_values=True):
        params.setdefault(name.lower(), []).append(value)
    for name in sorted(params):
        resource += f"\n{name}:{','.join(sorted(params[name]))}"
    return resource


def string_to_sign(request: PreparedRequest, account_name: str) -> str:
    values = []
    for header in _SIGNED_HEADERS:
        value = request.headers.get(header, "")
        if header == "Content-Length" and value == "0":
            value = ""
        values.append(value)
    lines = [request.method.upper()] + values + _canonicalized_headers(request)
    return "\n".join(lines) + "\n" + _canonicalized_resource(account_name, request.url)


class SharedKeyAuth(AuthBase):
    """Sign requests with the account name and key."""

    def __init__(self, account_name: str, account_key: str):
        self.account_name = account_name
        self.account_key = account_key

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        if "ocp-date" not in request.headers:
            request.headers["ocp-date"] = formatdate(usegmt=True)
        signature = generate_signature(string_to_sign(request, self.account_name), self.account_key)
        request.headers["Authorization"] = f"SharedKey {self.account_name}:{signature}"
        return request


class BearerTokenAuth(AuthBase):
    """Send a Microsoft Entra access token."""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        request.headers["Authorization"] = f"Bearer {self.token}"
        return request
