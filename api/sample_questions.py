"""
api/sample_questions.py — 참조 서비스용 샘플 문제 은행

correct / explanations 는 서버 내부 정보이며 시험 중에는 클라이언트로 보내지 않는다.
"""

from typing import Any


def _q(qid, text, options, correct, tags, multi=False, why=""):
    return {
        "id": qid,
        "question_text": text,
        "multi_select": multi,
        "options": [{"id": k, "text": v} for k, v in options],
        "correct": list(correct),
        "tags": list(tags),
        "explanations_en": {k: {"text": why, "url": ""} for k in correct},
        "explanations_pl": {},
    }


SAMPLE_QUESTIONS: list[dict[str, Any]] = [
    _q("q01", "Which HTTP method is idempotent by definition?",
       [("A", "POST"), ("B", "PUT"), ("C", "PATCH"), ("D", "CONNECT")],
       ["B"], ["http"], why="Repeating a PUT leaves the resource in the same state."),
    _q("q02", "Which status codes indicate a client error? (select all)",
       [("A", "404"), ("B", "500"), ("C", "400"), ("D", "302")],
       ["A", "C"], ["http"], multi=True, why="4xx codes are client errors."),
    _q("q03", "What does TLS primarily provide?",
       [("A", "Compression"), ("B", "Load balancing"), ("C", "Encrypted transport"), ("D", "Caching")],
       ["C"], ["security"], why="TLS encrypts and authenticates the channel."),
    _q("q04", "Which are valid ways to mitigate CSRF? (select all)",
       [("A", "SameSite cookies"), ("B", "Anti-forgery tokens"), ("C", "Longer passwords"), ("D", "Gzip")],
       ["A", "B"], ["security"], multi=True, why="Both prevent cross-site request forgery."),
    _q("q05", "Which data structure gives O(1) average lookup by key?",
       [("A", "Linked list"), ("B", "Hash table"), ("C", "Binary heap"), ("D", "Stack")],
       ["B"], ["algorithms"], why="Hash tables index by hashed key."),
    _q("q06", "What is the time complexity of binary search?",
       [("A", "O(n)"), ("B", "O(n log n)"), ("C", "O(log n)"), ("D", "O(1)")],
       ["C"], ["algorithms"], why="The search space halves every step."),
    _q("q07", "Which SQL clause filters grouped rows?",
       [("A", "WHERE"), ("B", "HAVING"), ("C", "ORDER BY"), ("D", "LIMIT")],
       ["B"], ["databases"], why="HAVING applies after GROUP BY."),
    _q("q08", "Which isolation anomalies does SERIALIZABLE prevent? (select all)",
       [("A", "Dirty reads"), ("B", "Phantom reads"), ("C", "Non-repeatable reads"), ("D", "Disk failure")],
       ["A", "B", "C"], ["databases"], multi=True, why="Serializable prevents all read anomalies."),
    _q("q09", "Which port does HTTPS use by default?",
       [("A", "80"), ("B", "21"), ("C", "443"), ("D", "8080")],
       ["C"], ["http"], why="443 is the registered HTTPS port."),
    _q("q10", "Which hashing algorithm is suitable for password storage?",
       [("A", "MD5"), ("B", "SHA-1"), ("C", "bcrypt"), ("D", "CRC32")],
       ["C"], ["security"], why="bcrypt is slow and salted by design."),
    _q("q11", "Which git command creates a new branch and switches to it?",
       [("A", "git branch -d"), ("B", "git switch -c"), ("C", "git merge"), ("D", "git stash")],
       ["B"], ["tools"], why="switch -c creates and checks out."),
    _q("q12", "Which of these are stable sorting algorithms? (select all)",
       [("A", "Merge sort"), ("B", "Quick sort"), ("C", "Insertion sort"), ("D", "Heap sort")],
       ["A", "C"], ["algorithms"], multi=True, why="Merge and insertion sort keep equal keys in order."),
]

QUESTION_INDEX: dict[str, dict[str, Any]] = {q["id"]: q for q in SAMPLE_QUESTIONS}


def public_question(q: dict[str, Any]) -> dict[str, Any]:
    """정답/해설을 뺀 클라이언트용 문제 (camelCase)."""
    return {
        "id": q["id"],
        "questionText": q["question_text"],
        "multiSelect": q["multi_select"],
        "options": [dict(o) for o in q["options"]],
    }
