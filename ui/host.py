"""
ui/host.py
==========
Textual implementation of the panel host.

Each surface is an installed screen named after its view type, so hiding
a panel (Escape) keeps its state while closing it (Ctrl+W) disposes it.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Dict, Type

from textual.app import App

from messages import OutboundMessage
from panels import RUNTIME_PANEL, PanelHost, PanelSpec, PanelSurface
from ui.panel_screens import GuideScreen, JavaRuntimeScreen, PanelScreen

logger = logging.getLogger(__name__)

SCREENS: Dict[str, Type[PanelScreen]] = {
    RUNTIME_PANEL.view_type: JavaRuntimeScreen,
}


class TextualPanelSurface(PanelSurface):
    """A panel surface backed by an installed Textual screen."""

    def __init__(self, spec: PanelSpec, app: App) -> None:
        super().__init__(spec)
        self.app = app
        screen_cls = SCREENS.get(spec.view_type, GuideScreen)
        self.screen = screen_cls(spec.title, send=self.receive, on_close=self.dispose)
        app.install_screen(self.screen, name=spec.view_type)

    def reveal(self) -> None:
        if self.app.screen is self.screen:
            return
        if len(self.app.screen_stack) > 1:
            self.app.switch_screen(self.spec.view_type)
        else:
            self.app.push_screen(self.spec.view_type)

    def post_message(self, message: OutboundMessage) -> None:
        self.screen.handle_panel_message(message)

    def _render_document(self, text: str) -> None:
        self.screen.set_document(text)

    def _close(self) -> None:
        if self.app.screen is self.screen:
            self.app.pop_screen()
        self.app.uninstall_screen(self.spec.view_type)


class TextualPanelHost(PanelHost):
    def __init__(self, app: App) -> None:
        self.app = app

    def create_surface(self, spec: PanelSpec) -> PanelSurface:
        surface = TextualPanelSurface(spec, self.app)
        surface.reveal()
        return surface

    def run_task(self, coro: Awaitable[Any]) -> None:
        self.app.run_worker(self._guarded(coro), exit_on_error=False)

    @staticmethod
    async def _guarded(coro: Awaitable[Any]) -> None:
        try:
            await coro
        except Exception:
            logger.exception("Panel task failed")
