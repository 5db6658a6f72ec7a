"""Tests for gitai.llm.client module."""

import json

import httpx
import pytest

from gitai.llm.client import CompletionClient
from gitai.llm.exceptions import (
    DecodeError,
    HttpStatusError,
    MissingAPIKeyError,
    TransportError,
)
from gitai.llm.models import CompletionRequest


def _request(prompt="Summarize this diff", **kwargs):
    return CompletionRequest(model="test-model", prompt=prompt, max_tokens=16, **kwargs)


class TestGetCompletion:
    """Tests for CompletionClient.get_completion."""

    def test_success(self, make_client, json_response, completion_body):
        """Test a successful request and its wire format."""
        client = make_client(lambda request: json_response(completion_body("Add parser", "Fix bug")))

        response = client.get_completion(_request(n=2, temperature=0.05))

        assert [r.text for r in response.results] == ["Add parser", "Fix bug"]
        assert response.usage.total_tokens == 15

        sent = client.seen[0]
        assert sent.method == "POST"
        assert sent.url.path == "/v1/completions"
        assert sent.headers["authorization"] == "Bearer test-key"
        body = json.loads(sent.content)
        assert body["model"] == "test-model"
        assert body["prompt"] == "Summarize this diff"
        assert body["n"] == 2
        assert body["max_tokens"] == 16
        assert "best_of" not in body

    def test_http_error_status(self, make_client, json_response):
        """Test that a 401 becomes HttpStatusError with the body."""
        client = make_client(
            lambda request: json_response({"error": {"message": "Invalid API key"}}, status_code=401)
        )

        with pytest.raises(HttpStatusError) as exc_info:
            client.get_completion(_request())

        assert exc_info.value.status_code == 401
        assert "Invalid API key" in exc_info.value.body

    def test_server_error_not_retried(self, make_client, json_response):
        """Test that a 500 is reported after a single attempt."""
        client = make_client(lambda request: json_response({"error": "boom"}, status_code=500))

        with pytest.raises(HttpStatusError):
            client.get_completion(_request())

        assert len(client.seen) == 1

    def test_malformed_json(self, make_client):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

        with pytest.raises(DecodeError, match="oops"):
            client.get_completion(_request())

    def test_missing_choices(self, make_client, json_response):
        client = make_client(lambda request: json_response({"object": "text_completion"}))

        with pytest.raises(DecodeError):
            client.get_completion(_request())

    def test_connection_error(self, make_client):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(refuse)

        with pytest.raises(TransportError):
            client.get_completion(_request())

    def test_timeout(self, make_client):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(slow)

        with pytest.raises(TransportError):
            client.get_completion(_request())

    def test_missing_api_key(self):
        client = CompletionClient(api_key=None)

        with pytest.raises(MissingAPIKeyError):
            client.get_completion(_request())


class TestGetModels:
    """Tests for CompletionClient.get_models."""

    def test_lists_models(self, make_client, json_response):
        payload = {
            "object": "list",
            "data": [
                {"id": "gpt-3.5-turbo-instruct", "object": "model", "owned_by": "system"},
                {"id": "davinci-002", "object": "model", "owned_by": "system"},
            ],
        }
        client = make_client(lambda request: json_response(payload))

        models = client.get_models()

        assert set(models) == {"gpt-3.5-turbo-instruct", "davinci-002"}
        assert models["davinci-002"]["owned_by"] == "system"
        assert client.seen[0].method == "GET"
        assert client.seen[0].url.path == "/v1/models"

    def test_missing_data(self, make_client, json_response):
        client = make_client(lambda request: json_response({"object": "list"}))

        with pytest.raises(DecodeError, match="data"):
            client.get_models()


class TestGetCompletionsBatch:
    """Tests for CompletionClient.get_completions_batch."""

    def test_all_succeed(self, make_client, json_response, completion_body):
        def echo(request):
            prompt = json.loads(request.content)["prompt"]
            return json_response(completion_body(f"answer to {prompt}"))

        client = make_client(echo)
        requests = [_request(prompt=f"p{i}") for i in range(4)]

        slots = sorted(client.get_completions_batch(requests), key=lambda s: s.index)

        assert [s.index for s in slots] == [0, 1, 2, 3]
        assert all(s.ok for s in slots)
        assert [s.response.results[0].text for s in slots] == [
            "answer to p0",
            "answer to p1",
            "answer to p2",
            "answer to p3",
        ]
        assert len(client.seen) == 4

    def test_partial_failure(self, make_client, json_response, completion_body):
        """Test that one failing request does not abort the others."""
        def handler(request):
            if json.loads(request.content)["prompt"] == "bad":
                return json_response({"error": "overloaded"}, status_code=503)
            return json_response(completion_body("fine"))

        client = make_client(handler)

        slots = client.get_completions_batch([_request(prompt="good"), _request(prompt="bad")])
        by_index = {s.index: s for s in slots}

        assert by_index[0].ok
        assert not by_index[1].ok
        assert isinstance(by_index[1].error, HttpStatusError)
        assert by_index[1].error.status_code == 503

    def test_empty_batch(self, make_client):
        client = make_client(lambda request: pytest.fail("no request expected"))

        assert client.get_completions_batch([]) == []

    def test_missing_api_key_raises_before_dispatch(self):
        client = CompletionClient(api_key="")

        with pytest.raises(MissingAPIKeyError):
            client.get_completions_batch([_request()])
