"""
Response Normalizer
===================
Extracts a payload dict from a heterogeneous oracle reply.

Reply Shapes:
    Depending on the provider and its version, the payload arrives as
      - a structured object under "structured_output"
      - a structured object under "result" (or "content" / "message")
      - a JSON string under one of those keys, possibly fenced in ```json
      - prose with a JSON object embedded somewhere inside
    The reply is first classified into exactly one ReplyShape, then resolved
    in that fixed priority order. Field-presence checking against the
    requested schema keeps unrelated envelope metadata (session ids, cost
    counters, ...) from being mistaken for the payload.

Failure Semantics:
    normalize_reply never raises. When no candidate exposes an expected
    field, or the envelope reports an error, the result carries an error
    message and no payload; callers must not invent one.

Every strategy attempt is traced at DEBUG level for diagnosis (--debug).
"""
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Envelope keys
# ---------------------------------------------------------------------------
STRUCTURED_KEY = "structured_output"
RESULT_KEYS = ("result", "content", "message")

_FENCE_OPEN_RE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?[ \t]*```\s*$")


class ReplyShape(str, Enum):
    STRUCTURED = "structured_output"
    RESULT_OBJECT = "result_object"
    RESULT_TEXT = "result_text"
    ERROR = "error"
    EMPTY = "empty"


@dataclass
class NormalizedReply:
    """Outcome of normalizing one oracle reply."""
    payload: Optional[dict] = None
    error: str = ""
    shape: ReplyShape = ReplyShape.EMPTY

    @property
    def success(self) -> bool:
        return self.payload is not None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def exposes_expected(candidate: Any, expected_fields: Iterable[str]) -> bool:
    """True if candidate is a dict carrying at least one expected field."""
    if not isinstance(candidate, dict):
        return False
    return any(name in candidate for name in expected_fields)


def strip_code_fence(text: str) -> str:
    """Remove an optional leading ```lang and trailing ``` delimiter."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN_RE.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def iter_balanced_objects(text: str) -> Iterator[str]:
    """
    Yield every balanced ``{...}`` substring, in order of its opening brace.

    Braces inside JSON string literals (including escaped quotes) do not
    change the nesting depth.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(start, len(text)):
            ch = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    yield text[start:idx + 1]
                    break
        start = text.find("{", start + 1)


def extract_first_object(text: str) -> Optional[str]:
    """Return the first balanced brace-delimited substring, or None."""
    return next(iter_balanced_objects(text), None)


def parse_json_text(text: str, expected_fields: Iterable[str]) -> Optional[dict]:
    """
    Parse a (possibly fenced, possibly prose-wrapped) JSON object string.

    Tries the whole string first, then each balanced object inside it.
    """
    expected = tuple(expected_fields)
    cleaned = strip_code_fence(text)
    if not cleaned:
        return None

    try:
        data = json.loads(cleaned)
        if exposes_expected(data, expected):
            logger.debug("normalizer: direct JSON parse matched")
            return data
        logger.debug("normalizer: direct JSON parse has no expected field")
    except (json.JSONDecodeError, ValueError):
        logger.debug("normalizer: direct JSON parse failed, scanning for objects")

    for candidate in iter_balanced_objects(cleaned):
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if exposes_expected(data, expected):
            logger.debug("normalizer: balanced-brace object matched (%d chars)", len(candidate))
            return data

    return None


def _envelope_error(envelope: dict) -> str:
    if envelope.get("is_error") is True:
        return str(envelope.get("result") or envelope.get("error") or "Oracle reported an error")
    subtype = envelope.get("subtype")
    if isinstance(subtype, str) and subtype.startswith("error"):
        return f"Oracle reported {subtype}"
    if isinstance(envelope.get("error"), (str, dict)) and envelope.get("error"):
        return str(envelope["error"])
    return ""


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
def classify_reply(envelope: Any, expected_fields: Iterable[str]) -> tuple[ReplyShape, Any]:
    """
    Decide which single shape a reply has.

    Returns the shape and the value that shape will be resolved from.
    """
    expected = tuple(expected_fields)
    if not isinstance(envelope, dict):
        return ReplyShape.EMPTY, None

    error = _envelope_error(envelope)
    if error:
        return ReplyShape.ERROR, error

    structured = envelope.get(STRUCTURED_KEY)
    if exposes_expected(structured, expected):
        return ReplyShape.STRUCTURED, structured

    text = None
    for key in RESULT_KEYS:
        value = envelope.get(key)
        if exposes_expected(value, expected):
            return ReplyShape.RESULT_OBJECT, value
        if text is None and isinstance(value, str) and value.strip():
            text = value

    # Bare payload with no envelope around it; its own string fields are not result text
    if exposes_expected(envelope, expected):
        return ReplyShape.RESULT_OBJECT, envelope

    if text is not None:
        return ReplyShape.RESULT_TEXT, text

    return ReplyShape.EMPTY, None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def normalize_reply(reply: Any, expected_fields: Iterable[str]) -> NormalizedReply:
    """
    Normalize a raw oracle reply into a payload dict.

    Parameters
    ----------
    reply : dict or str
        Parsed reply envelope, or raw stdout text of the oracle process.
    expected_fields : iterable of str
        Field names of the requested payload schema.

    Returns
    -------
    NormalizedReply
        payload on success; error message otherwise.
    """
    expected = tuple(expected_fields)

    envelope = reply
    if isinstance(reply, str):
        text = reply.strip()
        if not text:
            return NormalizedReply(error="Empty response from oracle")
        try:
            envelope = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            # Not an envelope: treat the whole text as the result field
            logger.debug("normalizer: reply is not a JSON envelope, treating as result text")
            envelope = {"result": text}
        if not isinstance(envelope, dict):
            envelope = {"result": text}

    shape, value = classify_reply(envelope, expected)
    logger.debug("normalizer: reply classified as %s", shape.value)

    if shape is ReplyShape.ERROR:
        return NormalizedReply(error=value, shape=shape)

    if shape in (ReplyShape.STRUCTURED, ReplyShape.RESULT_OBJECT):
        return NormalizedReply(payload=value, shape=shape)

    if shape is ReplyShape.RESULT_TEXT:
        payload = parse_json_text(value, expected)
        if payload is not None:
            return NormalizedReply(payload=payload, shape=shape)
        return NormalizedReply(
            error=f"No JSON object with fields {', '.join(expected)} found in response",
            shape=shape,
        )

    return NormalizedReply(error="No data found in response", shape=ReplyShape.EMPTY)
