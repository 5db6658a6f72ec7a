"""Tests for gitai.pipeline module."""

import random
from unittest.mock import MagicMock

import pytest

from gitai.git.diff import parse_diff
from gitai.git.exceptions import NoStagedChangesError
from gitai.llm.budget import estimate_max_tokens
from gitai.llm.exceptions import EmptyCompletionError, HttpStatusError, TransportError
from gitai.llm.models import BatchSlot, CompletionResponse, CompletionResult, UsageReport
from gitai.llm.prompts import DEFAULT_PRESET
from gitai.pipeline import CommitPipeline, PipelineRun, PipelineState


def _response(*texts, total_tokens=15):
    return CompletionResponse(
        results=[CompletionResult(text=text, index=i) for i, text in enumerate(texts)],
        usage=UsageReport(prompt_tokens=10, completion_tokens=total_tokens - 10, total_tokens=total_tokens),
    )


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def commit_sink():
    return MagicMock(return_value="deadbeef")


@pytest.fixture
def make_pipeline(ai_settings, client, commit_sink, sample_raw_diff):
    """Build a pipeline with the sample diff and the mocked collaborators."""
    def _make(confirm=None, **settings):
        for key, value in settings.items():
            setattr(ai_settings, key, value)
        return CommitPipeline(
            settings=ai_settings,
            client=client,
            diff_source=lambda: parse_diff(sample_raw_diff),
            commit_sink=commit_sink,
            confirm=confirm or MagicMock(return_value=True),
            rng=random.Random(1234),
        )

    return _make


class TestBuildRequest:
    """Tests for CommitPipeline.build_request."""

    def test_uses_settings_and_budget(self, make_pipeline):
        pipeline = make_pipeline(temperature=0.05, top_p=1.0, presence_penalty=0.1)
        prompt = "x" * 400

        request = pipeline.build_request(prompt, n=2)

        assert request.model == "test-model"
        assert request.n == 2
        assert request.max_tokens == estimate_max_tokens(prompt) == 100
        assert request.temperature == 0.05
        assert request.presence_penalty == 0.1
        assert request.best_of is None

    def test_best_of_raised_to_n(self, make_pipeline):
        pipeline = make_pipeline(best_of=2)

        assert pipeline.build_request("p", n=4).best_of == 4
        assert pipeline.build_request("p", n=1).best_of == 2


class TestSingleMode:
    """Tests for the default (non-stochastic) mode."""

    def test_one_request_with_n_candidates(self, make_pipeline, client, commit_sink):
        """Test that num_tries maps to n of a single request."""
        client.get_completion.return_value = _response("First", "Second", "Third")
        confirm = MagicMock(side_effect=[False, True])
        pipeline = make_pipeline(num_tries=3, confirm=confirm)

        run = pipeline.run()

        client.get_completion.assert_called_once()
        request = client.get_completion.call_args.args[0]
        assert request.n == 3
        assert run.presets == [DEFAULT_PRESET]
        assert "Python" in request.prompt
        assert " 1 def main():" in request.prompt
        client.get_completions_batch.assert_not_called()

        assert confirm.call_args_list[0].args == ("First", 1, 3)
        assert confirm.call_args_list[1].args == ("Second", 2, 3)
        commit_sink.assert_called_once_with("Second")
        assert run.state is PipelineState.COMMITTED
        assert run.commit_id == "deadbeef"
        assert run.message == "Second"
        assert run.accepted is True

    def test_declined(self, make_pipeline, client, commit_sink):
        """Test that declining every candidate ends without a commit."""
        client.get_completion.return_value = _response("Only one", total_tokens=42)
        pipeline = make_pipeline(confirm=MagicMock(return_value=False))

        run = pipeline.run()

        assert run.state is PipelineState.DECLINED
        assert run.accepted is False
        assert run.usage.total_tokens == 42
        commit_sink.assert_not_called()

    def test_empty_completion(self, make_pipeline, client, commit_sink):
        client.get_completion.return_value = _response("", "\n\n")
        pipeline = make_pipeline()
        run = PipelineRun()

        with pytest.raises(EmptyCompletionError):
            pipeline.run(run)

        assert run.state is PipelineState.FAILED
        assert isinstance(run.error, EmptyCompletionError)
        commit_sink.assert_not_called()

    def test_auto_ai_skips_confirmation(self, make_pipeline, client, commit_sink):
        client.get_completion.return_value = _response("\nAuto message\n\n", "Other")
        confirm = MagicMock()
        pipeline = make_pipeline(auto_ai=True, num_tries=2, confirm=confirm)

        run = pipeline.run()

        confirm.assert_not_called()
        commit_sink.assert_called_once_with("Auto message")
        assert run.state is PipelineState.COMMITTED

    def test_transport_error_propagates(self, make_pipeline, client):
        client.get_completion.side_effect = TransportError("unreachable")
        run = PipelineRun()

        with pytest.raises(TransportError):
            make_pipeline().run(run)

        assert run.state is PipelineState.FAILED


class TestStochasticMode:
    """Tests for stochastic mode."""

    def test_one_request_per_preset(self, make_pipeline, client, commit_sink):
        """Test that num_tries single-candidate requests are sent as one batch."""
        def batch(requests):
            # Arrival order differs from submission order
            return [
                BatchSlot(index=i, request=r, response=_response(f"Candidate {i}"))
                for i, r in reversed(list(enumerate(requests)))
            ]

        client.get_completions_batch.side_effect = batch
        confirm = MagicMock(side_effect=[False, False, True])
        pipeline = make_pipeline(stochastic=True, num_tries=3, confirm=confirm)

        run = pipeline.run()

        requests = client.get_completions_batch.call_args.args[0]
        assert len(requests) == 3
        assert all(r.n == 1 for r in requests)
        assert len(run.presets) == 3
        client.get_completion.assert_not_called()

        assert run.candidates == ["Candidate 0", "Candidate 1", "Candidate 2"]
        commit_sink.assert_called_once_with("Candidate 2")
        assert run.usage.total_tokens == 45

    def test_partial_failure_keeps_successes(self, make_pipeline, client):
        def batch(requests):
            return [
                BatchSlot(index=0, request=requests[0], error=HttpStatusError(503, "busy")),
                BatchSlot(index=1, request=requests[1], response=_response("Survivor")),
                BatchSlot(index=2, request=requests[2], response=_response("")),
            ]

        client.get_completions_batch.side_effect = batch
        confirm = MagicMock(return_value=True)

        run = make_pipeline(stochastic=True, num_tries=3, confirm=confirm).run()

        assert run.candidates == ["Survivor"]
        confirm.assert_called_once_with("Survivor", 1, 1)
        assert run.state is PipelineState.COMMITTED

    def test_all_failures_raise_first_error(self, make_pipeline, client, commit_sink):
        first = TransportError("first")

        def batch(requests):
            return [
                BatchSlot(index=1, request=requests[1], error=HttpStatusError(500, "second")),
                BatchSlot(index=0, request=requests[0], error=first),
            ]

        client.get_completions_batch.side_effect = batch
        run = PipelineRun()

        with pytest.raises(TransportError) as exc_info:
            make_pipeline(stochastic=True, num_tries=2).run(run)

        assert exc_info.value is first
        assert run.state is PipelineState.FAILED
        commit_sink.assert_not_called()


class TestDiffStage:
    """Tests for the diff stage."""

    def test_no_staged_changes(self, ai_settings, client, commit_sink):
        def no_changes():
            raise NoStagedChangesError("nothing staged")

        pipeline = CommitPipeline(
            settings=ai_settings,
            client=client,
            diff_source=no_changes,
            commit_sink=commit_sink,
            confirm=MagicMock(),
        )
        run = PipelineRun()

        with pytest.raises(NoStagedChangesError):
            pipeline.run(run)

        assert run.state is PipelineState.FAILED
        assert run.is_finished
        client.get_completion.assert_not_called()

    def test_diff_text_recorded(self, make_pipeline, client):
        client.get_completion.return_value = _response("msg")

        run = make_pipeline().run()

        assert run.diff_text.startswith("diff --git a/app.py b/app.py\n")
