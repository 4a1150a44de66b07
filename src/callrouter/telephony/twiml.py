"""
Voice-response document model.

The call-flow handlers build a small tree of verbs and only render it to the
provider's XML format at the HTTP boundary:

    Say        spoken prompt with an explicit voice
    Hangup     terminate the call
    Dial       bridge to a new outbound leg (caller id, fallback action, recording)
    Number     the dialed leg, with an optional pre-bridge prompt URL (whisper)
    Record     capture caller audio, with a completion callback

Rendering is deterministic: attributes are emitted in a fixed order and
``None`` attributes are skipped, so identical trees render to identical bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeVar, Union

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'

RECORD_FROM_ANSWER_DUAL = "record-from-answer-dual"


@dataclass(frozen=True)
class Say:
    text: str
    voice: str | None = None


@dataclass(frozen=True)
class Hangup:
    pass


@dataclass(frozen=True)
class Number:
    phone: str
    url: str | None = None


@dataclass(frozen=True)
class Dial:
    number: Number
    caller_id: str | None = None
    action: str | None = None
    record: str | None = None


@dataclass(frozen=True)
class Record:
    recording_status_callback: str | None = None
    recording_status_callback_event: str | None = None


Verb = Union[Say, Hangup, Dial, Record]

V = TypeVar("V", Say, Hangup, Dial, Record)


@dataclass
class VoiceResponse:
    """Ordered list of top-level verbs."""

    verbs: list[Verb] = field(default_factory=list)

    def say(self, text: str, voice: str | None = None) -> VoiceResponse:
        self.verbs.append(Say(text=text, voice=voice))
        return self

    def hangup(self) -> VoiceResponse:
        self.verbs.append(Hangup())
        return self

    def append(self, verb: Verb) -> VoiceResponse:
        self.verbs.append(verb)
        return self

    def find(self, kind: type[V]) -> list[V]:
        return [v for v in self.verbs if isinstance(v, kind)]

    def to_xml(self) -> str:
        return render(self)


def _xml_escape(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _attrs(pairs: list[tuple[str, str | None]]) -> str:
    return "".join(
        f' {name}="{_xml_escape(value)}"' for name, value in pairs if value is not None
    )


def _render_verb(verb: Verb) -> str:
    if isinstance(verb, Say):
        return f"<Say{_attrs([('voice', verb.voice)])}>{_xml_escape(verb.text)}</Say>"

    if isinstance(verb, Hangup):
        return "<Hangup />"

    if isinstance(verb, Dial):
        dial_attrs = _attrs(
            [
                ("callerId", verb.caller_id),
                ("action", verb.action),
                ("record", verb.record),
            ]
        )
        number = verb.number
        number_xml = (
            f"<Number{_attrs([('url', number.url)])}>{_xml_escape(number.phone)}</Number>"
        )
        return f"<Dial{dial_attrs}>{number_xml}</Dial>"

    if isinstance(verb, Record):
        record_attrs = _attrs(
            [
                ("recordingStatusCallback", verb.recording_status_callback),
                ("recordingStatusCallbackEvent", verb.recording_status_callback_event),
            ]
        )
        return f"<Record{record_attrs} />"

    raise TypeError(f"Unsupported verb: {type(verb).__name__}")


def render(response: VoiceResponse) -> str:
    """Render a voice-response tree to the provider XML document."""
    body = "".join(_render_verb(v) for v in response.verbs)
    return f"{XML_HEADER}<Response>{body}</Response>"
