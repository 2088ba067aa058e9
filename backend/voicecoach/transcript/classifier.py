from typing import Any, Optional

from .models import ClassifiedEvent, EventKind
from . import rules


def _discriminator(raw: dict) -> Optional[str]:
    for key in rules.TYPE_KEYS:
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
    return None


def _kind_for(raw: dict) -> EventKind:
    source = raw.get("source")
    if source == rules.SOURCE_USER:
        return EventKind.USER_TRANSCRIPT
    if source == rules.SOURCE_AI:
        return EventKind.FINAL_AGENT_RESPONSE

    message_type = _discriminator(raw)
    if message_type in rules.USER_TRANSCRIPT_TYPES:
        return EventKind.USER_TRANSCRIPT
    if message_type in rules.TENTATIVE_AGENT_TYPES:
        return EventKind.TENTATIVE_AGENT_RESPONSE
    if message_type in rules.FINAL_AGENT_TYPES:
        return EventKind.FINAL_AGENT_RESPONSE
    if message_type in rules.INTERRUPTION_TYPES:
        return EventKind.INTERRUPTION
    return EventKind.UNRECOGNIZED


def _unwrap(body: Any) -> Any:
    if isinstance(body, dict):
        for key in rules.NESTED_EVENT_KEYS:
            nested = body.get(key)
            if isinstance(nested, dict):
                return nested
    return body


def _body(raw: dict) -> Any:
    for key in rules.CONTENT_KEYS:
        if raw.get(key) is not None:
            return _unwrap(raw[key])
    return _unwrap(raw)


def _text_from(body: Any, keys: tuple) -> str:
    if isinstance(body, str):
        return body.strip()
    if isinstance(body, dict):
        for key in keys:
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return ""


def _explicitly_tentative(*candidates: Any) -> bool:
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        for key in rules.NON_FINAL_FLAG_KEYS:
            if key in candidate and candidate[key] is False:
                return True
    return False


def classify_event(raw: Any) -> ClassifiedEvent:
    """
    Normalize one loosely-typed SDK message into a ClassifiedEvent.

    The explicit ``source`` discriminator wins; otherwise the type/event-kind
    string decides. Anything without usable text (except interruptions) is
    UNRECOGNIZED so callers can drop it without touching state.
    """
    if not isinstance(raw, dict):
        return ClassifiedEvent(raw=raw)

    kind = _kind_for(raw)
    if kind is EventKind.UNRECOGNIZED:
        return ClassifiedEvent(raw=raw)
    if kind is EventKind.INTERRUPTION:
        return ClassifiedEvent(kind=kind, raw=raw)

    body = _body(raw)
    if kind is EventKind.USER_TRANSCRIPT:
        text = _text_from(body, rules.USER_TEXT_KEYS)
        final = not _explicitly_tentative(raw, body)
    else:
        text = _text_from(body, rules.AGENT_TEXT_KEYS)
        final = kind is EventKind.FINAL_AGENT_RESPONSE

    if not text:
        return ClassifiedEvent(raw=raw)

    return ClassifiedEvent(kind=kind, text=text, final=final, raw=raw)
