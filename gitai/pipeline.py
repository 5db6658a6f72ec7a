"""Commit message generation pipeline.

A run goes through these states:

    start -> diff_ready -> candidates_ready -> committed | declined
    (any step) -> failed

In the default mode one prompt is rendered from the default preset and the
endpoint is asked for ``num_tries`` candidates through ``n``. In stochastic
mode ``num_tries`` presets are drawn at random and sent as independent
single-candidate requests in one concurrent batch. Nothing is retried: the
number of tries only controls how many candidates are generated up front.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from gitai.config import AISettings
from gitai.git.diff import StructuredDiff, normalize_diff
from gitai.llm.budget import estimate_max_tokens
from gitai.llm.client import CompletionClient
from gitai.llm.exceptions import EmptyCompletionError, LLMError
from gitai.llm.models import CompletionRequest, UsageReport
from gitai.llm.prompts import (
    DEFAULT_PRESET,
    PromptPreset,
    choose_presets,
    get_preset,
    render,
)
from gitai.selector import collect

logger = logging.getLogger(__name__)

DiffSource = Callable[[], StructuredDiff]
CommitSink = Callable[[str], str]
# (candidate, position starting at 1, total candidates) -> accepted
ConfirmGate = Callable[[str, int, int], bool]


class PipelineState(Enum):
    """States of a pipeline run."""

    START = "start"
    DIFF_READY = "diff_ready"
    CANDIDATES_READY = "candidates_ready"
    COMMITTED = "committed"
    DECLINED = "declined"
    FAILED = "failed"


TERMINAL_STATES = (PipelineState.COMMITTED, PipelineState.DECLINED, PipelineState.FAILED)


@dataclass
class PipelineRun:
    """Everything produced by one invocation of the pipeline."""

    state: PipelineState = PipelineState.START
    diff_text: Optional[str] = None
    presets: list[PromptPreset] = field(default_factory=list)
    prompts: list[str] = field(default_factory=list)
    requests: list[CompletionRequest] = field(default_factory=list)
    candidates: list[str] = field(default_factory=list)
    usage: UsageReport = field(default_factory=UsageReport)
    accepted: Optional[bool] = None
    message: Optional[str] = None
    commit_id: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES


class CommitPipeline:
    """Turns the staged diff into a commit through the completion endpoint."""

    def __init__(
        self,
        settings: AISettings,
        client: CompletionClient,
        diff_source: DiffSource,
        commit_sink: CommitSink,
        confirm: ConfirmGate,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the pipeline.

        Args:
            settings: Model, sampling, language and mode settings.
            client: Client for the completion endpoint.
            diff_source: Returns the staged StructuredDiff.
            commit_sink: Commits a message and returns the new commit id.
            confirm: Asks the operator whether to commit a candidate.
            rng: Random source for stochastic preset sampling.
        """
        self.settings = settings
        self.client = client
        self.diff_source = diff_source
        self.commit_sink = commit_sink
        self.confirm = confirm
        self.rng = rng or random.Random()

    def build_request(self, prompt: str, n: int) -> CompletionRequest:
        """Build a request for ``prompt`` asking for ``n`` candidates."""
        s = self.settings
        best_of = max(s.best_of, n) if s.best_of is not None else None
        return CompletionRequest(
            model=s.model,
            prompt=prompt,
            suffix=s.suffix,
            max_tokens=estimate_max_tokens(prompt, divisor=s.token_divisor, ceiling=s.max_tokens),
            temperature=s.temperature,
            top_p=s.top_p,
            n=n,
            stop=s.stop,
            presence_penalty=s.presence_penalty,
            frequency_penalty=s.frequency_penalty,
            best_of=best_of,
        )

    def run(self, run: Optional[PipelineRun] = None) -> PipelineRun:
        """Execute the pipeline until a terminal state.

        Args:
            run: The run to fill in (a new one is created when omitted).

        Returns:
            The finished run, either committed or declined.

        Raises:
            GitError: If the diff cannot be produced or the commit fails.
            LLMError: If no candidate could be generated.
        """
        run = run or PipelineRun()
        try:
            self._prepare_diff(run)
            if self.settings.stochastic:
                self._generate_stochastic(run)
            else:
                self._generate_single(run)
            self._decide(run)
        except Exception as e:
            run.state = PipelineState.FAILED
            run.error = e
            logger.debug("Pipeline failed: %s", e)
            raise
        return run

    def _prepare_diff(self, run: PipelineRun) -> None:
        run.diff_text = normalize_diff(self.diff_source())
        run.state = PipelineState.DIFF_READY
        logger.debug("Diff ready (%d chars)", len(run.diff_text))

    def _generate_single(self, run: PipelineRun) -> None:
        logger.info("Non-stochastic mode, requesting %d candidate(s)", self.settings.num_tries)
        prompt = render(get_preset(DEFAULT_PRESET), run.diff_text, self.settings.language)
        request = self.build_request(prompt, n=self.settings.num_tries)
        run.presets = [DEFAULT_PRESET]
        run.prompts = [prompt]
        run.requests = [request]

        response = self.client.get_completion(request)
        run.usage = run.usage + response.usage
        run.candidates = collect(response.results)
        run.state = PipelineState.CANDIDATES_READY

    def _generate_stochastic(self, run: PipelineRun) -> None:
        logger.info("Stochastic mode, sending %d prompt(s)", self.settings.num_tries)
        run.presets = choose_presets(self.settings.num_tries, self.rng)
        run.prompts = [
            render(get_preset(preset), run.diff_text, self.settings.language)
            for preset in run.presets
        ]
        run.requests = [self.build_request(prompt, n=1) for prompt in run.prompts]

        slots = sorted(self.client.get_completions_batch(run.requests), key=lambda s: s.index)

        candidates: list[str] = []
        errors: list[LLMError] = []
        for slot in slots:
            preset = run.presets[slot.index]
            if not slot.ok:
                logger.warning("Request #%d (%s) failed: %s", slot.index + 1, preset.value, slot.error)
                errors.append(slot.error)
                continue
            run.usage = run.usage + slot.response.usage
            try:
                candidates.extend(collect(slot.response.results))
            except EmptyCompletionError as e:
                logger.warning("Request #%d (%s) returned no text", slot.index + 1, preset.value)
                errors.append(e)

        if slots and len(errors) == len(slots):
            raise errors[0]
        if not candidates:
            raise EmptyCompletionError("The completion endpoint returned no candidates.")

        run.candidates = candidates
        run.state = PipelineState.CANDIDATES_READY

    def _decide(self, run: PipelineRun) -> None:
        chosen: Optional[str] = None
        if self.settings.auto_ai:
            logger.info("Auto AI mode, accepting the first candidate")
            chosen = run.candidates[0]
        else:
            total = len(run.candidates)
            for position, candidate in enumerate(run.candidates, start=1):
                if self.confirm(candidate, position, total):
                    chosen = candidate
                    break

        if chosen is None:
            run.accepted = False
            run.state = PipelineState.DECLINED
            return

        run.accepted = True
        run.message = chosen
        run.commit_id = self.commit_sink(chosen)
        run.state = PipelineState.COMMITTED
