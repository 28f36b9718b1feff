"""Thin client for Supabase's PostgREST data API and auth API.

Usage example:
    from supabase_rest import create_client
    client = create_client('https://project.supabase.co', 'anon-key', token=user_access_token)
    rows = client.get('Food', {'name': 'John Doe'})
    client.put_row('Food', 'id', 10, b'{"rating": 4}')
"""
from typing import Optional

from .base_client import DEFAULT_TIMEOUT, BearerAuth, bearer_authorization, format_query_params  # noqa: F401
from .client import API_PATHS, SupabaseClient, primary_key_filter  # noqa: F401
from .exceptions import (  # noqa: F401
    ConfigurationError,
    InvalidResponseError,
    RequestBuildError,
    RequestFailedError,
    SupabaseError,
    TransportError,
)
from .models import AuthTokenResponse, TokenRequestPayload  # noqa: F401


def create_client(base_url: str, api_key: str, token: str = '', timeout: Optional[float] = DEFAULT_TIMEOUT) -> SupabaseClient:
    return SupabaseClient(base_url, api_key, token=token, timeout=timeout)
