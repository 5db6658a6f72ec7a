"""Client for an OpenAI-compatible text completion endpoint.

The client shares one httpx connection pool between all requests, so the
batch path can dispatch requests from several threads at once. Automatic
retries of the SDK are disabled: a failed request is reported to the caller.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional, Sequence, TypeVar

import httpx
import openai
from openai import OpenAI

from gitai.llm.exceptions import (
    DecodeError,
    HttpStatusError,
    LLMError,
    MissingAPIKeyError,
    TransportError,
)
from gitai.llm.models import (
    BatchSlot,
    CompletionRequest,
    CompletionResponse,
    parse_completion_body,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_CONNECT_TIMEOUT = 10.0
MAX_REDIRECTS = 5

T = TypeVar("T")


class CompletionClient:
    """Thread-safe client for the completions and models endpoints."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Bearer token for the endpoint.
            base_url: Base URL of the API (the part before /completions).
            timeout: Read timeout in seconds for every request.
            http_client: Custom httpx client (the client creates one when omitted).
        """
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._lock = threading.Lock()
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._client: Optional[OpenAI] = None

    def _ensure_client(self) -> OpenAI:
        """Lazily create and cache the OpenAI client."""
        with self._lock:
            if self._client is None:
                if not self.api_key:
                    raise MissingAPIKeyError(
                        "API key not found. Set it using:\n"
                        "  1. Environment variable: export GITAI_API_KEY=your_key_here\n"
                        "  2. Run: gitai config set-key\n"
                        "  3. Pass --ai-api-token on the command line"
                    )
                timeout = httpx.Timeout(self.timeout, connect=DEFAULT_CONNECT_TIMEOUT)
                if self._http_client is None:
                    self._http_client = httpx.Client(
                        timeout=timeout,
                        follow_redirects=True,
                        max_redirects=MAX_REDIRECTS,
                    )
                self._client = OpenAI(
                    api_key=self.api_key,
                    base_url=self.base_url,
                    http_client=self._http_client,
                    timeout=timeout,
                    max_retries=0,
                )
                logger.debug("Initialized completion client for %s", self.base_url)
            return self._client

    def _call(self, what: str, fn: Callable[[], T]) -> T:
        """Run an SDK call, translating SDK errors into LLM errors."""
        try:
            return fn()
        except openai.APIStatusError as e:
            logger.debug("%s failed with HTTP %s", what, e.status_code)
            raise HttpStatusError(e.status_code, e.response.text)
        except openai.APITimeoutError as e:
            raise TransportError(f"{what} timed out after {self.timeout}s: {e}")
        except openai.APIConnectionError as e:
            cause = e.__cause__ or e
            raise TransportError(f"Unable to reach {self.base_url} ({what}): {cause}")
        except openai.OpenAIError as e:
            raise LLMError(f"{what} failed: {e}")

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(
                f"Failed to parse response as JSON.\n"
                f"Error: {e}\n"
                f"Raw response:\n{response.text[:500]}"
            )

    def get_models(self) -> dict[str, dict[str, Any]]:
        """List the models available on the endpoint.

        Returns:
            Mapping of model id to the metadata the endpoint reports for it.

        Raises:
            MissingAPIKeyError: If no API key is configured.
            TransportError: If the endpoint cannot be reached.
            HttpStatusError: If the endpoint answers with a non-2xx status.
            DecodeError: If the response body is not well-formed.
        """
        client = self._ensure_client()
        raw = self._call("List models", lambda: client.models.with_raw_response.list())
        payload = self._decode_json(raw.http_response)

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise DecodeError("Unexpected response payload for model listing (missing 'data').")

        models: dict[str, dict[str, Any]] = {}
        for entry in data:
            if isinstance(entry, dict) and isinstance(entry.get("id"), str):
                models[entry["id"]] = entry
        return models

    def get_completion(self, request: CompletionRequest) -> CompletionResponse:
        """Send one completion request and wait for the answer.

        Args:
            request: The sampling configuration and prompt.

        Returns:
            The candidates (one per ``n``) and the token usage.

        Raises:
            MissingAPIKeyError: If no API key is configured.
            TransportError: On connectivity failure, timeout or redirect loop.
            HttpStatusError: If the endpoint answers with a non-2xx status.
            DecodeError: If the response body is malformed.
        """
        client = self._ensure_client()
        logger.debug(
            "POST %s/completions model=%s n=%d max_tokens=%d prompt_chars=%d",
            self.base_url,
            request.model,
            request.n,
            request.max_tokens,
            len(request.prompt),
        )
        raw = self._call(
            "Completion request",
            lambda: client.completions.with_raw_response.create(**request.to_payload()),
        )
        response = parse_completion_body(self._decode_json(raw.http_response))
        logger.debug(
            "Received %d choice(s), %d total tokens",
            len(response.results),
            response.usage.total_tokens,
        )
        return response

    def get_completions_batch(
        self,
        requests: Sequence[CompletionRequest],
        max_workers: Optional[int] = None,
    ) -> list[BatchSlot]:
        """Send all requests concurrently.

        A failing request does not abort the others; its error is stored in
        its slot instead.

        Args:
            requests: The requests to send.
            max_workers: Thread pool size (defaults to one thread per request).

        Returns:
            One BatchSlot per request, in arrival order. ``BatchSlot.index``
            is the submission position of the request.

        Raises:
            MissingAPIKeyError: If no API key is configured.
        """
        if not requests:
            return []

        # Create the shared client before the worker threads start
        self._ensure_client()

        slots: list[BatchSlot] = []
        with ThreadPoolExecutor(max_workers=max(1, max_workers or len(requests))) as executor:
            futures = {
                executor.submit(self.get_completion, request): (index, request)
                for index, request in enumerate(requests)
            }
            for future in as_completed(futures):
                index, request = futures[future]
                try:
                    slots.append(BatchSlot(index=index, request=request, response=future.result()))
                except LLMError as e:
                    logger.debug("Batch request #%d failed: %s", index + 1, e)
                    slots.append(BatchSlot(index=index, request=request, error=e))
        return slots

    def close(self) -> None:
        """Close the connection pool if this client created it."""
        with self._lock:
            if self._http_client is not None and self._owns_http_client:
                self._http_client.close()
                self._http_client = None
            self._client = None

    def __enter__(self) -> "CompletionClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
