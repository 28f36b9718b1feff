from __future__ import annotations
import os
import json
import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote
import requests
from requests.auth import AuthBase
from requests.utils import check_header_validity
from .exceptions import ConfigurationError, RequestBuildError, RequestFailedError, TransportError

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'Bearer '
DEFAULT_TIMEOUT = 30.0

_BUILD_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.InvalidHeader,
)


def format_query_params(params: Mapping[str, Any]) -> Dict[str, str]:
    """Rewrite every value into a PostgREST equality filter, ``eq.<escaped value>``.

    Values are escaped once here and sent verbatim, so ``John Doe`` goes out as
    ``eq.John%20Doe`` and the backend sees ``eq.John Doe``. Other operators
    are not supported.

    Values should be strings. Booleans are rendered as ``true``/``false`` and
    other scalars with ``str()``; ``None`` raises TypeError because an equality
    filter cannot match null.
    """
    return {key: 'eq.' + quote(_filter_value(key, value), safe='') for key, value in params.items()}


def _filter_value(key: str, value: Any) -> str:
    if value is None:
        raise TypeError(f"filter value for '{key}' is None; equality filters cannot match null")
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def encode_query(params: Mapping[str, str]) -> str:
    # values are expected to be escaped already
    return '&'.join(f"{quote(str(key), safe='')}={value}" for key, value in params.items())


def bearer_authorization(token: Optional[str]) -> Optional[str]:
    """Authorization header value for ``token``, or None for an empty token.

    A token that already carries the bearer prefix is returned unchanged.
    """
    if not token:
        return None
    if token[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX.lower():
        return token
    return BEARER_PREFIX + token


class BearerAuth(AuthBase):
    """Attach the bearer token; passing any auth object keeps requests from reading ~/.netrc."""

    def __init__(self, token: Optional[str]):
        self.token = token

    def __call__(self, r):
        authorization = bearer_authorization(self.token)
        if authorization:
            check_header_validity(('Authorization', authorization))
            r.headers['Authorization'] = authorization
        else:
            r.headers.pop('Authorization', None)
        return r


def serialize_body(data: Any) -> Optional[bytes]:
    if data is None or isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode('utf-8')
    return json.dumps(data).encode('utf-8')


class BaseClient:
    """Request builder and response classifier shared by the REST and auth surfaces."""

    def __init__(self, base_url: str, api_key: str, token: str = '', timeout: Optional[float] = DEFAULT_TIMEOUT):
        self.base_url = base_url
        self.api_key = api_key
        # read on every request; callers may swap it after a refresh
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()

    def _url(self, path: str, params: Mapping[str, str] | None = None) -> str:
        url = self.base_url.rstrip('/') + '/' + path.lstrip('/')
        if params:
            url += ('&' if '?' in url else '?') + encode_query(params)
        return url

    def _headers(self) -> Dict[str, str]:
        return {
            'apikey': self.api_key,
            'Content-Type': 'application/json',
        }

    def _request(self, method: str, path: str, *, params: Mapping[str, str] | None = None, data: Any = None, operation: str | None = None) -> bytes:
        """Send one request and return the raw body of a 2xx response.

        ``params`` values must already be escaped. Any other status raises
        RequestFailedError; the response is released on every path.
        """
        op = operation or f"{method} {path}"
        url = self._url(path, params)
        body = serialize_body(data)
        logger.debug('%s: %s %s', op, method, url)
        try:
            with self.session.request(method, url, headers=self._headers(), auth=BearerAuth(self.token), data=body, timeout=self.timeout) as resp:
                status = resp.status_code
                content = resp.content
        except _BUILD_ERRORS as e:
            logger.warning('%s: cannot build request: %s', op, e)
            raise RequestBuildError(f"{op}: cannot build request for {url!r}: {e}") from e
        except requests.RequestException as e:
            logger.warning('%s: request could not be completed: %s', op, e)
            raise TransportError(f"{op}: request could not be completed: {e}") from e

        if status < 200 or status >= 300:
            err = RequestFailedError(status, content)
            logger.warning('%s: request failed with status %d: %s', op, status, err.text)
            raise err
        return content

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @staticmethod
    def env(name: str, required: bool = True) -> Optional[str]:
        val = os.getenv(name)
        if required and (val is None or val.strip() == ''):
            raise ConfigurationError(f"Missing required environment variable: {name}")
        return val
