"""
messages.py
===========
Typed messages exchanged between panels and their UI surfaces.

Inbound payloads (UI → panel) are plain dicts keyed by ``command``; they
are decoded exactly once by :func:`decode_message`. Outbound messages
serialise themselves with ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


class MessageError(ValueError):
    """An inbound payload is not a known, well-formed message."""


# ──────────────────────────────────────────────
#  Inbound
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class RequestJdkInfo:
    """Ask for a release suggestion; None fields fall back to advisor defaults."""

    command = "requestJdkInfo"

    jdk_version: Optional[str] = None
    jvm_impl: Optional[str] = None


@dataclass(frozen=True)
class TabActivated:
    """A guide tab was brought to the front."""

    command = "tabActivated"

    tab_id: str


InboundMessage = Union[RequestJdkInfo, TabActivated]


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None or isinstance(value, str):
        return value
    raise MessageError(f"{key!r} must be a string, got {type(value).__name__}")


def decode_message(payload: Any) -> InboundMessage:
    """
    Decode a raw UI payload.

    Raises:
        MessageError: for non-dict payloads, unknown commands or bad fields
    """
    if not isinstance(payload, dict):
        raise MessageError(f"Message must be an object, got {type(payload).__name__}")

    command = payload.get("command")
    if command == RequestJdkInfo.command:
        return RequestJdkInfo(
            jdk_version=_optional_str(payload, "jdkVersion"),
            jvm_impl=_optional_str(payload, "jvmImpl"),
        )
    if command == TabActivated.command:
        tab_id = _optional_str(payload, "tabId")
        if tab_id is None:
            raise MessageError("'tabId' is required for tabActivated")
        return TabActivated(tab_id=tab_id)

    raise MessageError(f"Unknown command: {command!r}")


# ──────────────────────────────────────────────
#  Outbound
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class ApplyJdkInfo:
    """Deliver a release suggestion, forwarded verbatim."""

    command = "applyJdkInfo"

    jdk_info: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"command": self.command, "jdkInfo": self.jdk_info}


@dataclass(frozen=True)
class ShowJavaRuntimeEntries:
    """Deliver validated JDK candidates (already in wire shape)."""

    command = "showJavaRuntimeEntries"

    entries: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"command": self.command, "entries": list(self.entries)}


OutboundMessage = Union[ApplyJdkInfo, ShowJavaRuntimeEntries]
