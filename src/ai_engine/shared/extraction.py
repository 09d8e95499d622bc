"""Pull a JSON value out of free-text model output.

Models often wrap the requested JSON in prose or code fences, so this is a
best-effort scan for the first balanced ``{...}`` or ``[...]`` span.
Callers that need schema conformance validate the result themselves.
"""

from __future__ import annotations

import json
from typing import Any

from ai_engine.domain.exceptions import ExtractionError

_CLOSERS = {"{": "}", "[": "]"}


def find_json_span(text: str) -> str | None:
    """Return the first balanced object/array span in ``text``, if any.

    Single pass over ``text``.  A mismatched closer fails every opener still
    pending; an opener that never closes is passed over in favour of the
    earliest span that did close inside it.
    """
    pending: list[int] = []  # start offsets of open brackets
    best: tuple[int, int] | None = None
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch in _CLOSERS:
            pending.append(i)
        elif not pending:
            continue
        elif ch == '"':
            in_string = True
        elif ch in "}]":
            start = pending.pop()
            if _CLOSERS[text[start]] != ch:
                pending.clear()
            elif best is None or start < best[0]:
                best = (start, i + 1)
            if not pending and best is not None:
                break

    if best is None:
        return None
    return text[best[0] : best[1]]


def extract_json(text: str) -> Any:
    """Parse the first embedded JSON object or array in ``text``.

    Raises:
        ExtractionError: no balanced span was found, or it is not valid JSON.
    """
    span = find_json_span(text)
    if span is None:
        raise ExtractionError("No JSON object or array found in response", text)
    try:
        return json.loads(span)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"Failed to parse JSON: {exc.msg}", text) from exc
