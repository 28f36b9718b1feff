import io
import json
from urllib.parse import urlsplit
import pytest
from requests.adapters import BaseAdapter
from requests.models import Response
from requests.structures import CaseInsensitiveDict
from supabase_rest import SupabaseClient

BASE_URL = 'https://project.supabase.test'
API_KEY = 'api-key'


class StubResponse(Response):
    released = False

    def close(self):
        self.released = True
        super().close()


class StubAdapter(BaseAdapter):
    """Transport adapter that records prepared requests and answers from memory."""

    def __init__(self):
        super().__init__()
        self.calls = []
        self.responses = []
        self.status_code = 200
        self.body = b'{}'
        self.handler = None
        self.error = None

    def reply(self, status_code=200, body=b'{}'):
        self.status_code = status_code
        self.body = body.encode('utf-8') if isinstance(body, str) else body

    def reply_json(self, obj, status_code=200):
        self.reply(status_code, json.dumps(obj))

    @property
    def last(self):
        return self.calls[-1][0]

    @property
    def last_kwargs(self):
        return self.calls[-1][1]

    def send(self, request, **kwargs):
        self.calls.append((request, kwargs))
        if self.error is not None:
            raise self.error
        if self.handler is not None:
            status_code, body = self.handler(request)
        else:
            status_code, body = self.status_code, self.body
        resp = StubResponse()
        resp.status_code = status_code
        resp.reason = 'stub'
        resp.headers = CaseInsensitiveDict({'Content-Type': 'application/json'})
        resp.encoding = 'utf-8'
        resp.raw = io.BytesIO(body)
        resp.url = request.url
        resp.request = request
        self.responses.append(resp)
        return resp

    def close(self):
        pass


def query_of(request):
    return urlsplit(request.url).query


def path_of(request):
    return urlsplit(request.url).path


def json_body(request):
    return json.loads(request.body)


@pytest.fixture
def stub():
    return StubAdapter()


@pytest.fixture
def make_client(stub):
    def _make(token='', **kwargs):
        client = SupabaseClient(BASE_URL, API_KEY, token, **kwargs)
        client.session.mount('https://', stub)
        return client
    return _make


@pytest.fixture
def client(make_client):
    return make_client('user-token')
