"""
panels.py
=========
Host-agnostic lifecycle for the three single-instance panels:

  - java.runtime         – Configure Java Runtime
  - java.extGuide        – Java Extension Guide
  - java.gettingStarted  – Java Getting Started

A panel is either Unopened (its slot holds no surface) or Open. Opening an
Open panel only reveals it; disposing the surface returns it to Unopened.
The UI toolkit is abstracted behind :class:`PanelHost` / :class:`PanelSurface`
(see ``ui/host.py`` for the Textual implementation).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any, Awaitable, Callable, ClassVar, Dict, List, Mapping, Optional, Type,
)

from java_runtime import find_java_runtime_entries
from messages import (
    ApplyJdkInfo,
    InboundMessage,
    MessageError,
    OutboundMessage,
    RequestJdkInfo,
    ShowJavaRuntimeEntries,
    TabActivated,
    decode_message,
)
from release_advisor import ReleaseAdvisorError, suggest_open_jdk
from settings import Settings
from telemetry import Telemetry

logger = logging.getLogger(__name__)


ASSET_DIR = Path(__file__).resolve().parent / "assets"


# ──────────────────────────────────────────────
#  Panel Specs
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class PanelSpec:
    view_type: str
    title: str
    document: str   # relative to the asset directory


RUNTIME_PANEL = PanelSpec("java.runtime", "Configure Java Runtime", "java-runtime/index.md")
EXT_GUIDE_PANEL = PanelSpec("java.extGuide", "Java Extension Guide", "ext-guide/index.md")
GETTING_STARTED_PANEL = PanelSpec(
    "java.gettingStarted", "Java Getting Started", "getting-started/index.md",
)


# ──────────────────────────────────────────────
#  Host Abstraction
# ──────────────────────────────────────────────

class PanelSurface(ABC):
    """A UI surface owned by the host; one per open panel."""

    def __init__(self, spec: PanelSpec) -> None:
        self.spec = spec
        self.document = ""
        self.disposed = False
        self._dispose_listeners: List[Callable[[], None]] = []
        self._message_listeners: List[Callable[[Any], None]] = []

    # ── Listeners ──────────────────────────────

    def on_did_dispose(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Subscribe to disposal; returns an unsubscribe callable."""
        self._dispose_listeners.append(listener)
        return lambda: self._remove(self._dispose_listeners, listener)

    def on_did_receive_message(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        """Subscribe to raw inbound payloads; returns an unsubscribe callable."""
        self._message_listeners.append(listener)
        return lambda: self._remove(self._message_listeners, listener)

    @staticmethod
    def _remove(listeners: List[Any], listener: Any) -> None:
        if listener in listeners:
            listeners.remove(listener)

    # ── Host → panel ───────────────────────────

    def receive(self, payload: Any) -> None:
        """Called by the host when the UI sends a message."""
        if self.disposed:
            return
        for listener in list(self._message_listeners):
            listener(payload)

    def dispose(self) -> None:
        """Close the surface (idempotent) and notify dispose listeners."""
        if self.disposed:
            return
        self.disposed = True
        self._close()
        for listener in list(self._dispose_listeners):
            listener()

    # ── Panel → host ───────────────────────────

    def set_document(self, text: str) -> None:
        self.document = text
        self._render_document(text)

    @abstractmethod
    def reveal(self) -> None:
        """Bring the surface to the front."""

    @abstractmethod
    def post_message(self, message: OutboundMessage) -> None:
        """Deliver a message to the UI."""

    @abstractmethod
    def _render_document(self, text: str) -> None:
        ...

    @abstractmethod
    def _close(self) -> None:
        ...


class PanelHost(ABC):
    """The UI toolkit that creates surfaces and runs background work."""

    @abstractmethod
    def create_surface(self, spec: PanelSpec) -> PanelSurface:
        ...

    @abstractmethod
    def run_task(self, coro: Awaitable[Any]) -> None:
        """Schedule a coroutine without waiting for it."""


# ──────────────────────────────────────────────
#  Context
# ──────────────────────────────────────────────

@dataclass
class PanelSlot:
    """Per-feature handle: None while Unopened."""

    spec: PanelSpec
    surface: Optional[PanelSurface] = None

    @property
    def is_open(self) -> bool:
        return self.surface is not None


@dataclass
class ExtensionContext:
    """Everything the panels need, passed explicitly instead of module globals."""

    host: PanelHost
    settings: Settings
    asset_dir: Path = ASSET_DIR
    telemetry: Telemetry = field(default_factory=Telemetry)
    env: Optional[Mapping[str, str]] = None
    slots: Dict[str, PanelSlot] = field(default_factory=dict)
    subscriptions: List[Callable[[], None]] = field(default_factory=list)

    def slot(self, spec: PanelSpec) -> PanelSlot:
        return self.slots.setdefault(spec.view_type, PanelSlot(spec))

    def dispose(self) -> None:
        """Drop every listener registered by the panels."""
        for unsubscribe in self.subscriptions:
            unsubscribe()
        self.subscriptions.clear()


def load_text_from_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Could not load panel document %s: %s", path, exc)
        return f"Document not available: {path.name}\n"


# ──────────────────────────────────────────────
#  Panels
# ──────────────────────────────────────────────

class Panel:
    """Open / restore / dispose logic shared by every panel."""

    spec: ClassVar[PanelSpec]
    restore_operation: ClassVar[str]

    def __init__(self, context: ExtensionContext) -> None:
        self.context = context
        self.slot = context.slot(self.spec)

    def open(self, operation_id: str) -> None:
        """Command handler: reveal the existing surface or create one."""
        if self.slot.surface is not None:
            self.slot.surface.reveal()
            return

        surface = self.context.host.create_surface(self.spec)
        self.slot.surface = surface
        logger.info("Opened %s (op=%s)", self.spec.view_type, operation_id)
        self._initialize(surface, operation_id)

    def restore(self, surface: PanelSurface) -> None:
        """Adopt a surface the host recreated, unless one is already open."""
        if self.slot.surface is not None:
            self.slot.surface.reveal()
            surface.dispose()
            return

        self.slot.surface = surface
        restore = self.context.telemetry.instrument_operation(
            self.restore_operation,
            lambda operation_id: self._initialize(surface, operation_id),
        )
        restore()

    def _initialize(self, surface: PanelSurface, operation_id: str) -> None:
        surface.set_document(load_text_from_file(self.context.asset_dir / self.spec.document))

        subscriptions: List[Callable[[], None]] = []
        subscriptions.append(
            surface.on_did_dispose(lambda: self._on_dispose(surface, subscriptions))
        )
        subscriptions.append(surface.on_did_receive_message(
            lambda payload: self._dispatch(surface, payload, operation_id)
        ))
        self.context.subscriptions.extend(subscriptions)
        self.on_initialized(surface, operation_id)

    def _on_dispose(
        self, surface: PanelSurface, subscriptions: List[Callable[[], None]]
    ) -> None:
        # Listeners of a disposed surface are released with it
        for unsubscribe in subscriptions:
            unsubscribe()
            if unsubscribe in self.context.subscriptions:
                self.context.subscriptions.remove(unsubscribe)

        if self.slot.surface is surface:
            self.slot.surface = None
            logger.info("Disposed %s", self.spec.view_type)

    def _dispatch(self, surface: PanelSurface, payload: Any, operation_id: str) -> None:
        try:
            message = decode_message(payload)
        except MessageError as exc:
            logger.warning("Ignoring message for %s: %s", self.spec.view_type, exc)
            return
        self.handle_message(surface, message, operation_id)

    def on_initialized(self, surface: PanelSurface, operation_id: str) -> None:
        """Hook run once a surface is wired up."""

    def handle_message(
        self, surface: PanelSurface, message: InboundMessage, operation_id: str
    ) -> None:
        logger.debug("%s ignores %s", self.spec.view_type, message.command)


class JavaRuntimePanel(Panel):
    """Lists JDK candidates and suggests an OpenJDK download."""

    spec = RUNTIME_PANEL
    restore_operation = "restoreJavaRuntimeView"

    def on_initialized(self, surface: PanelSurface, operation_id: str) -> None:
        self.context.host.run_task(self.apply_jdk_info(surface))
        self.context.host.run_task(self.show_java_runtime_entries(surface))

    def handle_message(
        self, surface: PanelSurface, message: InboundMessage, operation_id: str
    ) -> None:
        if isinstance(message, RequestJdkInfo):
            self.context.host.run_task(
                self.apply_jdk_info(surface, message.jdk_version, message.jvm_impl)
            )
        else:
            super().handle_message(surface, message, operation_id)

    async def apply_jdk_info(
        self,
        surface: PanelSurface,
        jdk_version: Optional[str] = None,
        jvm_impl: Optional[str] = None,
    ) -> None:
        """Fetch a suggestion and post it; failures leave the UI untouched."""
        settings = self.context.settings
        try:
            jdk_info = await suggest_open_jdk(
                jdk_version or settings.get("jdkAdvisor.jdkVersion"),
                jvm_impl or settings.get("jdkAdvisor.jvmImpl"),
                api_base=settings.get("jdkAdvisor.apiBase"),
            )
        except ReleaseAdvisorError as exc:
            logger.warning("No JDK suggestion available: %s", exc)
            return

        if not surface.disposed:
            surface.post_message(ApplyJdkInfo(jdk_info))

    async def show_java_runtime_entries(self, surface: PanelSurface) -> None:
        entries = await find_java_runtime_entries(self.context.settings, self.context.env)
        if not surface.disposed:
            surface.post_message(ShowJavaRuntimeEntries([e.to_dict() for e in entries]))


class _GuidePanel(Panel):
    """Static document with tabs; reports tab activation."""

    def handle_message(
        self, surface: PanelSurface, message: InboundMessage, operation_id: str
    ) -> None:
        if isinstance(message, TabActivated):
            self.context.telemetry.send_info(operation_id, {
                "infoType": "tabActivated",
                "tabId": message.tab_id,
            })
        else:
            super().handle_message(surface, message, operation_id)


class ExtGuidePanel(_GuidePanel):
    spec = EXT_GUIDE_PANEL
    restore_operation = "restoreExtGuideView"


class GettingStartedPanel(_GuidePanel):
    spec = GETTING_STARTED_PANEL
    restore_operation = "restoreGettingStartedView"


# ──────────────────────────────────────────────
#  Commands
# ──────────────────────────────────────────────

PANELS: Dict[str, Type[Panel]] = {
    RUNTIME_PANEL.view_type: JavaRuntimePanel,
    EXT_GUIDE_PANEL.view_type: ExtGuidePanel,
    GETTING_STARTED_PANEL.view_type: GettingStartedPanel,
}


def register_commands(context: ExtensionContext) -> Dict[str, Callable[[], None]]:
    """Return an instrumented open command per panel, keyed by view type."""
    return {
        view_type: context.telemetry.instrument_operation(view_type, panel_cls(context).open)
        for view_type, panel_cls in PANELS.items()
    }


def restore_panel(context: ExtensionContext, surface: PanelSurface) -> None:
    """Route a host-recreated surface to the panel that owns its view type."""
    panel_cls = PANELS.get(surface.spec.view_type)
    if panel_cls is None:
        logger.warning("No panel for view type %s", surface.spec.view_type)
        surface.dispose()
        return
    panel_cls(context).restore(surface)
