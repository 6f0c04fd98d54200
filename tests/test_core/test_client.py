"""
Tests for the query client and response classification
"""

import httpx
import pytest

from dbx.core.client import QueryClient, classify
from dbx.core.errors import TransportError
from dbx.core.types import ResponseShape


class TestClassify:
    """Test response body classification"""

    def test_array_of_objects_is_tabular(self):
        shape, payload = classify('[{"a": 1}, {"b": 2}]')
        assert shape is ResponseShape.TABULAR
        assert payload == [{"a": 1}, {"b": 2}]

    def test_empty_array_is_tabular(self):
        shape, payload = classify("[]")
        assert shape is ResponseShape.TABULAR
        assert payload == []

    def test_array_of_scalars_is_structured(self):
        shape, payload = classify("[1, 2, 3]")
        assert shape is ResponseShape.STRUCTURED
        assert payload == [1, 2, 3]

    def test_mixed_array_is_structured(self):
        shape, _ = classify('[{"a": 1}, 2]')
        assert shape is ResponseShape.STRUCTURED

    def test_object_is_structured(self):
        shape, payload = classify('{"count": 42}')
        assert shape is ResponseShape.STRUCTURED
        assert payload == {"count": 42}

    def test_scalar_is_structured(self):
        assert classify("42")[0] is ResponseShape.STRUCTURED
        assert classify("null")[0] is ResponseShape.STRUCTURED

    def test_invalid_json_is_text(self):
        shape, payload = classify("syntax error near 'selec'")
        assert shape is ResponseShape.TEXT
        assert payload == "syntax error near 'selec'"

    def test_empty_body_is_text(self):
        assert classify("")[0] is ResponseShape.TEXT

    def test_deeply_nested_body_is_text(self):
        """Nesting past the decoder's recursion limit falls back to text"""
        body = "[" * 100000
        shape, payload = classify(body)
        assert shape is ResponseShape.TEXT
        assert payload == body

    def test_is_json(self):
        assert ResponseShape.TABULAR.is_json
        assert ResponseShape.STRUCTURED.is_json
        assert not ResponseShape.TEXT.is_json


class TestQueryClient:
    """Test requests against a mock endpoint"""

    def test_execute_tabular(self, client, sample_data):
        result = client.execute("select * from people")

        assert result.shape is ResponseShape.TABULAR
        assert result.rows == sample_data
        assert result.status_code == 200
        assert result.elapsed is not None

    def test_query_is_sent_as_q_parameter(self, client, endpoint):
        client.execute("select *\nfrom people where name = 'a&b'")

        request = endpoint.requests[-1]
        assert request.method == "GET"
        assert request.url.path == "/db"
        assert request.url.params["q"] == "select *\nfrom people where name = 'a&b'"

    def test_raw_body_is_kept(self, client):
        result = client.execute("select 1")
        assert result.shape is ResponseShape.STRUCTURED
        assert result.payload == {"ok": 1}
        assert result.raw == '{"ok": 1}'
        assert result.rows is None

    def test_server_error_is_not_raised(self, client):
        result = client.execute("boom")
        assert result.status_code == 500
        assert result.shape is ResponseShape.TEXT
        assert result.raw == "internal error"

    def test_custom_param(self, endpoint):
        seen = []

        def handler(request):
            seen.append(dict(request.url.params))
            return httpx.Response(200, text="[]")

        with QueryClient("http://db.test/api", param="query", transport=httpx.MockTransport(handler)) as client:
            client.execute("select 1")

        assert seen == [{"query": "select 1"}]

    def test_probe_returns_status(self, client, endpoint):
        assert client.probe() == 200
        endpoint.probe_status = 503
        assert client.probe() == 503
        assert "q" not in endpoint.requests[-1].url.params

    def test_transport_failure_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with QueryClient("http://db.test/db", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError, match="connection refused") as excinfo:
                client.execute("select 1")

        assert isinstance(excinfo.value.cause, httpx.ConnectError)

    def test_probe_transport_failure_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with QueryClient("http://db.test/db", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError):
                client.probe()
