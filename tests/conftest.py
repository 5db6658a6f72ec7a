"""Shared test fixtures and configuration."""

import json
import tempfile
from pathlib import Path

import httpx
import pytest

from gitai.config import AISettings
from gitai.llm.client import CompletionClient


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_raw_diff():
    """Raw `git diff --cached` output with a modified and a new file."""
    return (
        b"diff --git a/app.py b/app.py\n"
        b"index 1234567..abcdefg 100644\n"
        b"--- a/app.py\n"
        b"+++ b/app.py\n"
        b"@@ -1,3 +1,3 @@\n"
        b" def main():\n"
        b"-    print(\"old\")\n"
        b"+    print(\"new\")\n"
        b"     return 0\n"
        b"diff --git a/hello.py b/hello.py\n"
        b"new file mode 100644\n"
        b"index 0000000..e69de29\n"
        b"--- /dev/null\n"
        b"+++ b/hello.py\n"
        b"@@ -0,0 +1,2 @@\n"
        b"+def hello():\n"
        b"+    return \"hi\"\n"
        b"\\ No newline at end of file\n"
    )


def _completion_body(*texts, prompt_tokens=10, completion_tokens=5):
    """Build a completions response body with one choice per text."""
    return {
        "id": "cmpl-test",
        "object": "text_completion",
        "model": "test-model",
        "choices": [
            {"text": text, "index": i, "logprobs": None, "finish_reason": "stop"}
            for i, text in enumerate(texts)
        ],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


@pytest.fixture
def make_client():
    """Factory for a CompletionClient backed by an httpx.MockTransport.

    The handler receives each httpx.Request and returns an httpx.Response.
    Requests seen by the transport are recorded on ``client.seen``.
    """
    clients = []

    def _make(handler, api_key="test-key", base_url="https://llm.test/v1"):
        seen = []

        def recording_handler(request):
            seen.append(request)
            return handler(request)

        http_client = httpx.Client(transport=httpx.MockTransport(recording_handler))
        client = CompletionClient(api_key=api_key, base_url=base_url, http_client=http_client)
        client.seen = seen
        clients.append(http_client)
        return client

    yield _make

    for http_client in clients:
        http_client.close()


def _json_response(payload, status_code=200):
    return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"),
                          headers={"content-type": "application/json"})


@pytest.fixture
def ai_settings():
    """AI settings with a key set and sampling defaults."""
    return AISettings(api_key="test-key", model="test-model")


@pytest.fixture
def completion_body():
    """Builder for completions response bodies."""
    return _completion_body


@pytest.fixture
def json_response():
    """Builder for JSON httpx responses."""
    return _json_response


@pytest.fixture
def mock_git_commands(mocker):
    """Mock subprocess.run for git commands."""
    mock_run = mocker.patch("subprocess.run")
    return mock_run
