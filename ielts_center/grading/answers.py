"""
Submitted answer decoding.

Stored answers are either a bare string (single-answer questions) or a
JSON-encoded object mapping sub-question index to a string (grouped
questions). They are decoded once, here, into a tagged union:

    SingleAnswer(text)            - plain string answer
    GroupedAnswer(parts, ...)     - {sub-question index: answer}

Which variant is produced is decided by the question shape, never by
sniffing the payload.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class SingleAnswer:
    """Answer to a question without sub-questions."""

    text: str | None

    @property
    def positions(self) -> list[str | None]:
        return [self.text]


@dataclass(frozen=True)
class GroupedAnswer:
    """Answers to a question group, keyed by sub-question index."""

    parts: dict[int, str] = field(default_factory=dict)
    malformed: bool = False

    def at(self, index: int) -> str | None:
        """Answer for sub-question `index`, or None if it was not answered."""
        return self.parts.get(index)

    def positions_for(self, count: int) -> list[str | None]:
        return [self.at(i) for i in range(count)]


DecodedAnswer = Union[SingleAnswer, GroupedAnswer]


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def _parts_from_mapping(payload: Mapping[Any, Any]) -> dict[int, str]:
    indexed: dict[int, str] = {}
    numeric = True
    for key in payload:
        try:
            int(key)
        except (TypeError, ValueError):
            numeric = False
            break

    # Non-numeric keys ("a", "b", ...) fall back to insertion order
    for position, (key, value) in enumerate(payload.items()):
        text = _as_text(value)
        if text is None:
            continue
        indexed[int(key) if numeric else position] = text
    return indexed


def _parts_from_sequence(payload: Sequence[Any]) -> dict[int, str]:
    return {i: text for i, value in enumerate(payload) if (text := _as_text(value)) is not None}


def decode_grouped(raw: str | Mapping[Any, Any] | None) -> GroupedAnswer:
    """
    Decode a grouped answer.

    Malformed payloads never raise: they decode to an empty, flagged
    GroupedAnswer so that every sub-answer grades as incorrect.
    """
    if raw is None:
        return GroupedAnswer()

    if isinstance(raw, Mapping):
        return GroupedAnswer(parts=_parts_from_mapping(raw))

    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return GroupedAnswer(malformed=True)

    if isinstance(payload, Mapping):
        return GroupedAnswer(parts=_parts_from_mapping(payload))
    if isinstance(payload, list):
        return GroupedAnswer(parts=_parts_from_sequence(payload))
    return GroupedAnswer(malformed=True)


def decode_answer(raw: str | Mapping[Any, Any] | None, grouped: bool) -> DecodedAnswer:
    """Decode a raw stored answer according to the question shape."""
    if grouped:
        return decode_grouped(raw)
    if isinstance(raw, Mapping):
        # A map submitted for a single-answer question cannot match
        return SingleAnswer(text=None)
    return SingleAnswer(text=raw)


def encode_answer(
    answer: str | Mapping[Any, Any] | Sequence[Any] | None,
    grouped: bool = True,
) -> str | None:
    """
    Encode an incoming answer payload to its stored string form.

    A list sent for a single-answer question ("choose TWO") is stored as the
    comma-separated choices that the single-answer grader splits.
    """
    if answer is None or isinstance(answer, str):
        return answer
    if isinstance(answer, Mapping):
        return json.dumps({str(k): v for k, v in answer.items()}, ensure_ascii=False)
    if not grouped:
        return ", ".join(text for value in answer if (text := _as_text(value)) is not None)
    return json.dumps(list(answer), ensure_ascii=False)
