"""
Conversation History Normalization Tests
"""

from types import SimpleNamespace

from rag_chat_server.chat.history import MAX_CONTENT_CHARS, normalize_history


def test_unknown_roles_are_dropped():
    raw = [
        {"role": "system", "content": "be nice"},
        {"role": "user", "content": "hi"},
        {"role": "tool", "content": "{}"},
        {"role": "assistant", "content": "hello"},
    ]

    assert normalize_history(raw) == [
        {"role": "user", "content": "hi"},
        {"role": "model", "content": "hello"},
    ]


def test_leading_assistant_turns_are_dropped():
    raw = [
        {"role": "assistant", "content": "Welcome!"},
        {"role": "assistant", "content": "Ask me anything."},
        {"role": "user", "content": "ok"},
    ]

    assert normalize_history(raw) == [{"role": "user", "content": "ok"}]


def test_empty_content_is_dropped():
    raw = [
        {"role": "user", "content": "   "},
        {"role": "user", "content": None},
        {"role": "user"},
        {"role": "user", "content": "real"},
    ]

    assert normalize_history(raw) == [{"role": "user", "content": "real"}]


def test_content_is_capped():
    raw = [{"role": "user", "content": "x" * (MAX_CONTENT_CHARS + 50)}]

    (turn,) = normalize_history(raw)

    assert len(turn["content"]) == MAX_CONTENT_CHARS


def test_truncation_keeps_most_recent_turns_and_starts_with_user():
    raw = []
    for i in range(15):
        raw.append({"role": "user", "content": f"q{i}"})
        raw.append({"role": "assistant", "content": f"a{i}"})

    result = normalize_history(raw, max_items=5)

    assert len(result) <= 5
    assert result[0]["role"] == "user"
    assert result[-1] == {"role": "model", "content": "a14"}


def test_non_positive_limit_yields_empty_history():
    assert normalize_history([{"role": "user", "content": "hi"}], max_items=0) == []


def test_accepts_objects_and_does_not_mutate_input():
    raw = [
        SimpleNamespace(role="user", content="from object"),
        {"role": "assistant", "content": "from dict"},
    ]
    snapshot = [dict(raw[1])]

    result = normalize_history(raw)

    assert result == [
        {"role": "user", "content": "from object"},
        {"role": "model", "content": "from dict"},
    ]
    assert [raw[1]] == snapshot


def test_normalization_is_idempotent():
    raw = [
        {"role": "assistant", "content": "greeting"},
        {"role": "user", "content": "a"},
        {"role": "system", "content": "ignored"},
        {"role": "assistant", "content": "b"},
        {"role": "user", "content": ""},
        {"role": "user", "content": "c"},
        {"role": "assistant", "content": "d"},
    ]

    for limit in (1, 2, 3, 20):
        once = normalize_history(raw, max_items=limit)
        assert normalize_history(once, max_items=limit) == once


def test_none_input():
    assert normalize_history(None) == []
