"""Tests for the HTTP client error mapping and wire format."""

import asyncio
import json

import httpx
import pytest

from exam_engine.errors import FinishFailed, RemoteUnavailable, StartFailed, SubmitFailed
from exam_engine.services.remote_client import ExamApiClient

BASE = "http://exam.test/api/v1"


def _client(handler) -> ExamApiClient:
    return ExamApiClient(base_url=BASE, transport=httpx.MockTransport(handler))


def _run(client: ExamApiClient, coro_factory):
    async def scenario():
        try:
            return await coro_factory(client)
        finally:
            await client.aclose()

    return asyncio.run(scenario())


QUESTION = {
    "id": "q1",
    "questionText": "Pick one",
    "multiSelect": False,
    "options": [{"id": "A", "text": "a"}, {"id": "B", "text": "b"}],
}


class TestStartExam:
    def test_request_and_response_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"examId": "e1", "durationSec": 900, "questions": [QUESTION]})

        res = _run(_client(handler), lambda c: c.start_exam(10, 900))
        assert seen["url"] == f"{BASE}/exams"
        assert seen["body"] == {"count": 10, "durationSec": 900}
        assert res.exam_id == "e1"
        assert res.duration_sec == 900
        assert res.questions[0].question_text == "Pick one"
        assert res.questions[0].option_ids() == ["A", "B"]

    def test_http_error_is_start_failed(self):
        def handler(request):
            return httpx.Response(503, json={"detail": "down"})

        with pytest.raises(StartFailed) as exc:
            _run(_client(handler), lambda c: c.start_exam(10, 900))
        assert exc.value.status_code == 503
        assert str(exc.value) == "Failed to start exam"

    def test_network_error_is_start_failed(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(StartFailed) as exc:
            _run(_client(handler), lambda c: c.start_exam(10, 900))
        assert exc.value.status_code is None

    def test_invalid_request_is_start_failed(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        with pytest.raises(StartFailed):
            _run(_client(handler), lambda c: c.start_exam(0, 900))
        assert calls == []

    def test_malformed_body_is_start_failed(self):
        def handler(request):
            return httpx.Response(200, json={"examId": ""})

        with pytest.raises(StartFailed):
            _run(_client(handler), lambda c: c.start_exam(10, 900))


class TestAnswerAndFinish:
    def test_answer_uses_query_and_body(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["question"] = request.url.params["questionId"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ok": True})

        _run(_client(handler), lambda c: c.answer_exam("e1", "q7", ["B", "A"]))
        assert seen == {
            "path": "/api/v1/exams/e1/answer",
            "question": "q7",
            "body": {"selected": ["B", "A"]},
        }

    def test_answer_failure(self):
        def handler(request):
            return httpx.Response(500)

        with pytest.raises(SubmitFailed):
            _run(_client(handler), lambda c: c.answer_exam("e1", "q1", ["A"]))

    def test_invalid_answer_body_is_submit_failed(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"ok": True})

        with pytest.raises(SubmitFailed) as exc:
            _run(_client(handler), lambda c: c.answer_exam("e1", "q1", [1]))
        assert exc.value.status_code is None
        assert calls == []

    def test_finish(self):
        def handler(request):
            assert request.url.path == "/api/v1/exams/e1/finish"
            return httpx.Response(200, json={
                "scorePercent": 75.0, "correct": 3, "wrong": 1, "passed": True, "items": [],
            })

        res = _run(_client(handler), lambda c: c.finish_exam("e1"))
        assert res.score_percent == 75.0
        assert res.passed is True

    def test_finish_failure(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(FinishFailed):
            _run(_client(handler), lambda c: c.finish_exam("e1"))


class TestReadOnly:
    def test_review_failure_is_remote_unavailable(self):
        def handler(request):
            return httpx.Response(404, json={"detail": "missing"})

        with pytest.raises(RemoteUnavailable) as exc:
            _run(_client(handler), lambda c: c.get_exam("nope"))
        assert exc.value.status_code == 404

    def test_list_exams_params(self):
        def handler(request):
            assert request.url.params["limit"] == "5"
            assert request.url.params["offset"] == "10"
            return httpx.Response(200, json={"total": 0, "limit": 5, "offset": 10, "items": []})

        page = _run(_client(handler), lambda c: c.list_exams(5, 10))
        assert page.total == 0

    def test_get_questions_with_tag(self):
        def handler(request):
            assert request.url.params["tag"] == "http"
            return httpx.Response(200, json=[QUESTION])

        questions = _run(_client(handler), lambda c: c.get_questions("http"))
        assert [q.id for q in questions] == ["q1"]
