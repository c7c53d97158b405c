"""
Conversation History Normalization

Reshapes a raw client message list into the dialogue form the completion
service accepts: only user/model turns, non-empty, opening with a user turn,
and bounded in length.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

DEFAULT_MAX_ITEMS = 20
MAX_CONTENT_CHARS = 8000

# Client role -> completion-service role. "model" maps to itself so that
# normalizing an already-normalized history is a no-op.
ROLE_MAP: Dict[str, str] = {
    "user": "user",
    "assistant": "model",
    "model": "model",
}


def message_field(message: Any, name: str) -> Any:
    if isinstance(message, Mapping):
        return message.get(name)
    return getattr(message, name, None)


def normalize_history(
    raw_messages: Optional[Iterable[Any]],
    max_items: int = DEFAULT_MAX_ITEMS,
) -> List[Dict[str, str]]:
    """
    Build a completion-ready history from raw messages.

    Steps, order-preserving:

    1. Drop messages whose role is not user/assistant. "model" is the one
       deliberate exception: it is kept so that a normalized history can be
       normalized again unchanged.
    2. Map assistant -> "model"; user and model stay as they are.
    3. Cap each message at ``MAX_CONTENT_CHARS`` characters.
    4. Drop messages whose trimmed content is empty.
    5. Drop leading turns until the first one is a user turn.
    6. Keep only the most recent ``max_items`` turns (then re-apply step 5).

    Accepts dicts or objects exposing ``role``/``content``. Never mutates the
    input and returns new dicts of the form ``{"role": ..., "content": ...}``.
    """
    turns: List[Dict[str, str]] = []

    for message in raw_messages or ():
        if message is None:
            continue

        role = ROLE_MAP.get(message_field(message, "role"))
        if role is None:
            continue

        content = message_field(message, "content")
        text = ("" if content is None else str(content))[:MAX_CONTENT_CHARS]
        if not text.strip():
            continue

        turns.append({"role": role, "content": text})

    if max_items <= 0:
        return []

    turns = _drop_leading_non_user(turns)
    if len(turns) > max_items:
        # Truncation can expose a model turn at the front
        turns = _drop_leading_non_user(turns[-max_items:])

    return turns


def _drop_leading_non_user(turns: List[Dict[str, str]]) -> List[Dict[str, str]]:
    start = 0
    while start < len(turns) and turns[start]["role"] != "user":
        start += 1
    return turns[start:]
