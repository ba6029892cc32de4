"""Tests for per-question answer submission and finish retry policy."""

import asyncio

import pytest

from conftest import FakeExamApi, make_session

from exam_engine.errors import FinishFailed, SubmitFailed
from exam_engine.services.answer_sync import AnswerSyncChannel
from exam_engine.services.session_store import SessionStore


def _setup(api=None):
    store = SessionStore()
    store.replace(make_session(5))
    store.writable = True
    errors = []
    channel = AnswerSyncChannel(api or FakeExamApi(), store, on_error=errors.append)
    return store, channel, errors


class TestSubmit:
    def test_success_marks_saved(self):
        store, channel, errors = _setup()

        async def scenario():
            ok = await channel.submit("exam-1", "q1", ["A"], 0)
            assert ok is True

        asyncio.run(scenario())
        assert store.is_saved(0)
        assert errors == []
        assert channel.client.answers[("exam-1", "q1")] == ["A"]

    def test_failure_reports_and_leaves_mark_absent(self):
        api = FakeExamApi()
        api.answer_error = SubmitFailed("Failed to save answer")
        store, channel, errors = _setup(api)

        async def scenario():
            assert await channel.submit("exam-1", "q1", ["A"], 0) is False

        asyncio.run(scenario())
        assert not store.is_saved(0)
        assert len(errors) == 1
        assert str(errors[0]) == "Failed to save answer"

    def test_resubmit_is_idempotent(self):
        store, channel, _ = _setup()

        async def scenario():
            await channel.submit("exam-1", "q2", ["B"], 1)
            first = dict(channel.client.answers)
            await channel.submit("exam-1", "q2", ["B"], 1)
            assert channel.client.answers == first

        asyncio.run(scenario())
        assert len(channel.client.answers) == 1

    def test_superseded_success_does_not_mark(self):
        api = FakeExamApi()
        api.hold_answers = True
        store, channel, _ = _setup(api)

        async def scenario():
            old = channel.submit("exam-1", "q1", ["A"], 0)
            new = channel.submit("exam-1", "q1", ["B"], 0)
            await asyncio.sleep(0)
            # 새 전송이 먼저 실패, 이전 전송이 나중에 성공
            api.answer_error = None
            fut_old, fut_new = api.pending[0][0], api.pending[1][0]
            fut_new.set_exception(SubmitFailed("Failed to save answer"))
            assert await new is False
            fut_old.set_result(None)
            assert await old is False

        asyncio.run(scenario())
        assert not store.is_saved(0)

    def test_superseded_failure_is_silent(self):
        api = FakeExamApi()
        api.hold_answers = True
        store, channel, errors = _setup(api)

        async def scenario():
            old = channel.submit("exam-1", "q1", ["A"], 0)
            new = channel.submit("exam-1", "q1", ["B"], 0)
            await asyncio.sleep(0)
            api.pending[1][0].set_result(None)
            assert await new is True
            api.pending[0][0].set_exception(SubmitFailed("Failed to save answer"))
            assert await old is False

        asyncio.run(scenario())
        assert store.is_saved(0)
        assert errors == []

    def test_invalidate_discards_in_flight_result(self):
        api = FakeExamApi()
        api.hold_answers = True
        store, channel, _ = _setup(api)

        async def scenario():
            task = channel.submit("exam-1", "q1", ["A"], 0)
            await asyncio.sleep(0)
            channel.invalidate("q1")  # 사용자가 답을 바꿈
            api.pending[0][0].set_result(None)
            assert await task is False

        asyncio.run(scenario())
        assert not store.is_saved(0)

    def test_different_questions_in_flight_concurrently(self):
        api = FakeExamApi()
        api.hold_answers = True
        store, channel, _ = _setup(api)

        async def scenario():
            t1 = channel.submit("exam-1", "q1", ["A"], 0)
            t2 = channel.submit("exam-1", "q2", ["B"], 1)
            await asyncio.sleep(0)
            assert channel.pending == 2
            for fut, *_ in api.pending:
                fut.set_result(None)
            await channel.drain()
            assert t1.result() and t2.result()

        asyncio.run(scenario())
        assert store.is_saved(0) and store.is_saved(1)

    def test_stale_exam_is_discarded(self):
        api = FakeExamApi()
        api.hold_answers = True
        store, channel, _ = _setup(api)

        async def scenario():
            task = channel.submit("exam-1", "q1", ["A"], 0)
            await asyncio.sleep(0)
            store.replace(make_session(5, exam_id="exam-2"))
            api.pending[0][0].set_result(None)
            assert await task is False

        asyncio.run(scenario())
        assert not store.is_saved(0)


class TestFinishRetry:
    def test_default_single_attempt(self):
        api = FakeExamApi()
        api.finish_errors = [FinishFailed("Failed to finish exam")]
        _, channel, _ = _setup(api)

        with pytest.raises(FinishFailed):
            asyncio.run(channel.finish("exam-1"))
        assert api.finish_calls == ["exam-1"]

    def test_bounded_retry_with_backoff(self):
        api = FakeExamApi()
        api.finish_errors = [FinishFailed("x"), FinishFailed("x")]
        store = SessionStore()
        channel = AnswerSyncChannel(api, store, retry_attempts=3, retry_backoff=0.001)

        summary = asyncio.run(channel.finish("exam-1"))
        assert summary.score_percent == 50.0
        assert len(api.finish_calls) == 3

    def test_bounded_retry_gives_up(self):
        api = FakeExamApi()
        api.finish_errors = [FinishFailed("x")] * 5
        channel = AnswerSyncChannel(api, SessionStore(), retry_attempts=2, retry_backoff=0.001)

        with pytest.raises(FinishFailed):
            asyncio.run(channel.finish("exam-1"))
        assert len(api.finish_calls) == 3
