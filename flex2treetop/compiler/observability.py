from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import logging
from typing import Any, Callable, Mapping, TypeVar

# ==================================================
# Notices
# ==================================================

UNRESOLVED_ACTION = "unresolved_action"
UNKNOWN_DECLARATION = "unknown_declaration"


@dataclass(frozen=True)
class TranslationNotice:
    """
    A non-fatal diagnostic produced during a translation run.
    """

    code: str
    message: str
    node_kind: str
    source_text: str | None = None


@dataclass(frozen=True)
class UnresolvedActionNotice(TranslationNotice):
    """
    A rule was skipped because no name could be recovered from its action.
    """

    code: str = UNRESOLVED_ACTION
    message: str = ""
    node_kind: str = "rule"


@dataclass(frozen=True)
class UnknownDeclarationNotice(TranslationNotice):
    """
    A top-level declaration was recognized but has no translation.
    """

    code: str = UNKNOWN_DECLARATION
    message: str = ""
    node_kind: str = "start_declaration"


def notice_to_dict(notice: TranslationNotice) -> dict[str, Any]:
    return {
        "code": notice.code,
        "message": notice.message,
        "node_kind": notice.node_kind,
        "source_text": notice.source_text,
    }

# ==================================================
# Events
# ==================================================

NoticeObserveHook = Callable[[TranslationNotice], None]
EventObserveHook = Callable[["TranslationEvent"], None]


@dataclass(frozen=True)
class ObservabilitySettings:
    """
    Translation observability settings.
    """

    notice_observer: NoticeObserveHook | None = None
    event_observer: EventObserveHook | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TranslationEvent:
    """
    Structured translation lifecycle event payload.
    """

    timestamp: str
    event: str
    success: bool
    metadata: Mapping[str, Any] = field(default_factory=dict)
    grammar: str | None = None
    output_path: str | None = None
    duration_ms: float | None = None
    rules_emitted: int | None = None
    rules_skipped: int | None = None
    notice_count: int | None = None
    error_type: str | None = None
    error_message: str | None = None


def translation_event_to_dict(event: TranslationEvent) -> dict[str, Any]:
    """
    Converts a TranslationEvent dataclass into a JSON-safe dictionary.
    """

    return {
        "timestamp": event.timestamp,
        "event": event.event,
        "success": event.success,
        "metadata": dict(event.metadata),
        "grammar": event.grammar,
        "output_path": event.output_path,
        "duration_ms": event.duration_ms,
        "rules_emitted": event.rules_emitted,
        "rules_skipped": event.rules_skipped,
        "notice_count": event.notice_count,
        "error_type": event.error_type,
        "error_message": event.error_message,
    }


def emit_event(settings: ObservabilitySettings, event: str, *, success: bool, **kwargs: Any) -> None:
    """
    Builds a TranslationEvent and hands it to the configured observer, if any.
    """
    if settings.event_observer is None:
        return

    payload = TranslationEvent(
        timestamp=datetime.now(timezone.utc).isoformat(),
        event=event,
        success=success,
        metadata=dict(settings.metadata),
        **kwargs,
    )
    settings.event_observer(payload)

# ==================================================
# Logging adapters
# ==================================================

def make_json_event_logger(
    *,
    logger: logging.Logger,
    level: int = logging.INFO,
) -> EventObserveHook:
    """
    Builds an EventObserveHook that emits one JSON log line per TranslationEvent.
    """

    def _log_event(event: TranslationEvent) -> None:
        payload = translation_event_to_dict(event)
        logger.log(level, json.dumps(payload, separators=(",", ":"), sort_keys=True))

    return _log_event


def make_json_notice_logger(
    *,
    logger: logging.Logger,
    level: int = logging.WARNING,
) -> NoticeObserveHook:
    """
    Builds a NoticeObserveHook that emits one JSON log line per TranslationNotice.
    """

    def _log_notice(notice: TranslationNotice) -> None:
        payload = notice_to_dict(notice)
        logger.log(level, json.dumps(payload, separators=(",", ":"), sort_keys=True))

    return _log_notice


T = TypeVar("T")


def compose_observers(*observers: Callable[[T], None]) -> Callable[[T], None]:
    """
    Composes multiple observers into a single observer.
    """

    def _composed(item: T) -> None:
        for observer in observers:
            observer(item)

    return _composed
