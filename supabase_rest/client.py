from __future__ import annotations
import json
import logging
from typing import Any, Dict, Mapping
from .base_client import DEFAULT_TIMEOUT, BaseClient, format_query_params
from .exceptions import ConfigurationError, InvalidResponseError
from .models import (
    AuthTokenResponse,
    MagicLinkPayload,
    PasswordResetPayload,
    TokenRequestPayload,
    VerifyOTPPayload,
)

logger = logging.getLogger(__name__)

REST_API_PATH = '/rest/v1'
AUTH_API_PATH = '/auth/v1'
TOKEN_API_PATH = AUTH_API_PATH + '/token'
SIGNUP_API_PATH = AUTH_API_PATH + '/signup'
MAGIC_LINK_API_PATH = AUTH_API_PATH + '/magiclink'
RECOVER_API_PATH = AUTH_API_PATH + '/recover'
VERIFY_API_PATH = AUTH_API_PATH + '/verify'
USER_API_PATH = AUTH_API_PATH + '/user'
LOGOUT_API_PATH = AUTH_API_PATH + '/logout'
INVITE_API_PATH = AUTH_API_PATH + '/invite'
RESET_API_PATH = AUTH_API_PATH + '/reset'

API_PATHS = (
    REST_API_PATH,
    AUTH_API_PATH,
    TOKEN_API_PATH,
    SIGNUP_API_PATH,
    MAGIC_LINK_API_PATH,
    RECOVER_API_PATH,
    VERIFY_API_PATH,
    USER_API_PATH,
    LOGOUT_API_PATH,
    INVITE_API_PATH,
    RESET_API_PATH,
)


def primary_key_filter(primary_key: str, value: Any) -> Dict[str, Any]:
    return {primary_key: value}


class SupabaseClient(BaseClient):
    """Supabase client for the PostgREST data API and the GoTrue auth API.

    Every call carries the API key and, when set, the caller's access token so
    Row Level Security applies on the backend. Data-surface calls return the
    raw response body as bytes.
    """

    @classmethod
    def from_env(cls, token: str = '') -> 'SupabaseClient':
        base_url = BaseClient.env('SUPABASE_URL')
        api_key = (BaseClient.env('SUPABASE_KEY', required=False) or '').strip()
        if not api_key:
            api_key = (BaseClient.env('SUPABASE_ANON_KEY', required=False) or '').strip()
        if not api_key:
            raise ConfigurationError('Missing required environment variable: SUPABASE_KEY (or SUPABASE_ANON_KEY)')
        timeout = DEFAULT_TIMEOUT
        raw_timeout = BaseClient.env('SUPABASE_TIMEOUT', required=False)
        if raw_timeout and raw_timeout.strip():
            try:
                timeout = float(raw_timeout)
            except ValueError as e:
                raise ConfigurationError(f"SUPABASE_TIMEOUT must be a number of seconds, got {raw_timeout!r}") from e
        return cls(base_url, api_key, token=token, timeout=timeout)  # type: ignore[arg-type]

    # -- data surface -------------------------------------------------------

    def _rest_path(self, resource: str) -> str:
        return f"{REST_API_PATH}/{resource.lstrip('/')}"

    def _rest_request(self, method: str, resource: str, filters: Mapping[str, Any] | None = None, data: Any = None) -> bytes:
        params = format_query_params(filters) if filters else None
        return self._request(method, self._rest_path(resource), params=params, data=data, operation=f"{method} {resource}")

    def get(self, resource: str, filters: Mapping[str, Any] | None = None) -> bytes:
        return self._rest_request('GET', resource, filters)

    def post(self, resource: str, data: Any) -> bytes:
        return self._rest_request('POST', resource, data=data)

    def put(self, resource: str, filters: Mapping[str, Any], data: Any) -> bytes:
        return self._rest_request('PUT', resource, filters, data)

    def patch(self, resource: str, filters: Mapping[str, Any], data: Any) -> bytes:
        """Partial update of every row matching ``filters``."""
        return self._rest_request('PATCH', resource, filters, data)

    def delete(self, resource: str, filters: Mapping[str, Any]) -> bytes:
        return self._rest_request('DELETE', resource, filters)

    def put_row(self, resource: str, primary_key: str, value: Any, data: Any) -> bytes:
        """Replace the single row identified by ``primary_key == value``."""
        return self.put(resource, primary_key_filter(primary_key, value), data)

    def delete_row(self, resource: str, primary_key: str, value: Any) -> bytes:
        return self.delete(resource, primary_key_filter(primary_key, value))

    # -- auth surface: token flow -------------------------------------------

    def _token_request(self, grant_type: str, payload: TokenRequestPayload, operation: str) -> AuthTokenResponse:
        content = self._request('POST', TOKEN_API_PATH, params={'grant_type': grant_type}, data=payload.to_dict(), operation=operation)
        try:
            return AuthTokenResponse.from_dict(json.loads(content))
        except ValueError as e:
            logger.warning('%s: failed to decode token response: %s', operation, e)
            raise InvalidResponseError(f"{operation}: invalid response from server: {e}") from e
        except InvalidResponseError as e:
            logger.warning('%s: %s', operation, e)
            raise

    def sign_in(self, email: str, password: str) -> AuthTokenResponse:
        payload = TokenRequestPayload(email=email, password=password)
        return self._token_request('password', payload, 'sign_in')

    def sign_in_with_phone(self, phone: str, password: str) -> AuthTokenResponse:
        payload = TokenRequestPayload(phone=phone, password=password)
        return self._token_request('password', payload, 'sign_in_with_phone')

    def refresh_token(self, refresh_token: str) -> AuthTokenResponse:
        payload = TokenRequestPayload(refresh_token=refresh_token)
        return self._token_request('refresh_token', payload, 'refresh_token')

    # -- auth surface: generic ----------------------------------------------

    def sign_up(self, email: str, password: str) -> bytes:
        payload = {'email': email, 'password': password}
        return self._request('POST', SIGNUP_API_PATH, params={'grant_type': 'signup'}, data=payload, operation='sign_up')

    def send_magic_link(self, email: str) -> bytes:
        return self._request('POST', MAGIC_LINK_API_PATH, data=MagicLinkPayload(email).to_dict(), operation='send_magic_link')

    def send_password_recovery(self, email: str) -> bytes:
        return self._request('POST', RECOVER_API_PATH, data=MagicLinkPayload(email).to_dict(), operation='send_password_recovery')

    def verify_otp(self, email: str, token: str, otp_type: str) -> bytes:
        payload = VerifyOTPPayload(email=email, token=token, type=otp_type)
        return self._request('POST', VERIFY_API_PATH, data=payload.to_dict(), operation='verify_otp')

    def get_user(self) -> bytes:
        """Profile of the user owning the current access token."""
        return self._request('GET', USER_API_PATH, operation='get_user')

    def update_user(self, attributes: Mapping[str, Any]) -> bytes:
        return self._request('PUT', USER_API_PATH, data=dict(attributes), operation='update_user')

    def sign_out(self) -> bytes:
        return self._request('POST', LOGOUT_API_PATH, operation='sign_out')

    def invite_user(self, email: str) -> bytes:
        # needs a service-role key on the backend
        return self._request('POST', INVITE_API_PATH, data=MagicLinkPayload(email).to_dict(), operation='invite_user')

    def reset_password(self, token: str, new_password: str) -> bytes:
        payload = PasswordResetPayload(token=token, password=new_password)
        return self._request('POST', RESET_API_PATH, params={'grant_type': 'reset_password'}, data=payload.to_dict(), operation='reset_password')
