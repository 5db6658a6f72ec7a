"""Data models for the completion endpoint.

Contains:
- CompletionRequest: Pydantic model for the sampling configuration sent to the endpoint
- FinishReason: Why a candidate stopped generating
- CompletionResult: One candidate returned by the endpoint
- UsageReport: Token accounting for a response
- CompletionResponse: Candidates plus usage for one request
- BatchSlot: Outcome of one request in a concurrent batch
- parse_completion_body: Validate a raw response payload into a CompletionResponse
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from gitai.llm.exceptions import DecodeError, LLMError

logger = logging.getLogger(__name__)


class CompletionRequest(BaseModel):
    """Sampling configuration for one completion request.

    Temperature and top_p are alternative controls; setting both is legal
    but discouraged. ``best_of`` must be at least ``n`` when set.
    """

    model: str
    prompt: str
    suffix: Optional[str] = None
    max_tokens: int = Field(default=256, ge=1)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, gt=0.0, le=1.0)
    n: int = Field(default=1, ge=1)
    stop: Optional[Union[str, list[str]]] = None
    presence_penalty: Optional[float] = Field(default=None, ge=-2.0, le=2.0)
    frequency_penalty: Optional[float] = Field(default=None, ge=-2.0, le=2.0)
    best_of: Optional[int] = Field(default=None, ge=1)

    @field_validator("stop", mode="before")
    @classmethod
    def drop_empty_stop(cls, v):
        """Treat empty stop sequences as unset."""
        if v is None or v == "":
            return None
        if isinstance(v, list):
            v = [s for s in v if s]
            return v or None
        return v

    @model_validator(mode="after")
    def check_sampling(self) -> "CompletionRequest":
        if self.best_of is not None and self.best_of < self.n:
            raise ValueError(f"best_of ({self.best_of}) must be >= n ({self.n})")
        if self.temperature is not None and self.top_p is not None and self.top_p < 1.0:
            logger.warning(
                "Both temperature (%s) and top_p (%s) are set; prefer one or the other",
                self.temperature,
                self.top_p,
            )
        return self

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON body for the completions endpoint (unset fields omitted)."""
        return self.model_dump(exclude_none=True)


class FinishReason(Enum):
    """Why the endpoint stopped generating a candidate."""

    STOP = "stop"
    LENGTH = "length"
    OTHER = "other"

    @classmethod
    def from_wire(cls, value: Optional[str]) -> "FinishReason":
        if value == "stop":
            return cls.STOP
        if value == "length":
            return cls.LENGTH
        return cls.OTHER


class CompletionResult(BaseModel):
    """One candidate completion.

    Attributes:
        text: The generated text (None when the endpoint returned nothing).
        index: Position among the ``n`` candidates of the request.
        logprob: Sum of the token log-probabilities, when the endpoint sent them.
        finish_reason: Why generation stopped.
    """

    text: Optional[str] = None
    index: int = 0
    logprob: Optional[float] = None
    finish_reason: FinishReason = FinishReason.OTHER


class UsageReport(BaseModel):
    """Token accounting attached to a response."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "UsageReport") -> "UsageReport":
        return UsageReport(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class CompletionResponse(BaseModel):
    """Candidates and usage returned for one request."""

    results: list[CompletionResult] = []
    usage: UsageReport = Field(default_factory=UsageReport)
    model: Optional[str] = None


@dataclass
class BatchSlot:
    """Outcome of one request dispatched through the batch path.

    Exactly one of ``response`` and ``error`` is set.

    Attributes:
        index: Submission position of the request in the batch.
        request: The request that was sent.
        response: The response, if the request succeeded.
        error: The error raised by the request, if it failed.
    """

    index: int
    request: CompletionRequest
    response: Optional[CompletionResponse] = None
    error: Optional[LLMError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class _WireLogprobs(BaseModel):
    token_logprobs: list[Optional[float]] = []


class _WireChoice(BaseModel):
    text: Optional[str] = None
    index: int = 0
    logprobs: Optional[_WireLogprobs] = None
    finish_reason: Optional[str] = None


class _WireBody(BaseModel):
    choices: list[_WireChoice]
    usage: Optional[UsageReport] = None
    model: Optional[str] = None


def parse_completion_body(payload: Any) -> CompletionResponse:
    """Validate a decoded completions payload.

    Args:
        payload: The JSON-decoded response body.

    Returns:
        The CompletionResponse with results ordered by choice index.

    Raises:
        DecodeError: If the payload does not have the expected shape.
    """
    try:
        body = _WireBody.model_validate(payload)
    except ValidationError as e:
        raise DecodeError(f"Completion response does not match expected schema.\nError: {e}")

    results = []
    for choice in sorted(body.choices, key=lambda c: c.index):
        logprob = None
        if choice.logprobs and choice.logprobs.token_logprobs:
            logprob = sum(lp for lp in choice.logprobs.token_logprobs if lp is not None)
        results.append(
            CompletionResult(
                text=choice.text,
                index=choice.index,
                logprob=logprob,
                finish_reason=FinishReason.from_wire(choice.finish_reason),
            )
        )

    return CompletionResponse(
        results=results,
        usage=body.usage or UsageReport(),
        model=body.model,
    )
