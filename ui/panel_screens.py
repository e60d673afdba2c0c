"""
ui/panel_screens.py
===================
Textual screens backing the three panels.

A screen never calls panel code directly: user actions are sent as raw
message payloads through ``send`` and panel output arrives through
:meth:`PanelScreen.handle_panel_message`.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Tuple

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import Screen
from textual.widgets import (
    Button, Footer, Header, Label, Markdown, Select, TabbedContent, TabPane,
)

from messages import ApplyJdkInfo, OutboundMessage, ShowJavaRuntimeEntries
from ui.widgets import JavaRuntimeTable, SuggestionView

JDK_VERSIONS = ["openjdk8", "openjdk11", "openjdk17", "openjdk21"]
JVM_IMPLS = ["hotspot", "openj9"]


class PanelScreen(Screen):
    """Base screen: a title, a Markdown document and a message channel."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Back"),
        ("ctrl+w", "close_panel", "Close"),
    ]

    def __init__(self, title: str, send: Callable[[Dict[str, Any]], None],
                 on_close: Callable[[], None]) -> None:
        super().__init__()
        self.panel_title = title
        self.document = ""
        self._send = send
        self._on_close = on_close
        self._pending: List[OutboundMessage] = []

    def set_document(self, text: str) -> None:
        self.document = text
        if self.is_mounted:
            self.refresh(recompose=True)

    def action_close_panel(self) -> None:
        self._on_close()

    def replay_pending(self) -> None:
        pending, self._pending = self._pending, []
        for message in pending:
            self.apply_message(message)

    def handle_panel_message(self, message: OutboundMessage) -> None:
        """Apply a message posted by the panel, or queue it until mounted."""
        if not self.is_mounted:
            self._pending.append(message)
            return
        self.apply_message(message)

    def apply_message(self, message: OutboundMessage) -> None:
        ...


class JavaRuntimeScreen(PanelScreen):
    """Configure Java Runtime."""

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with VerticalScroll(classes="panel"):
            yield Label(f"☕  {self.panel_title}", classes="panel-title")
            yield Markdown(self.document, id="runtime-doc")
            yield JavaRuntimeTable(id="runtime-table")

            yield Label("⬇ Suggested download", classes="panel-title")
            with Horizontal(id="suggest-actions"):
                yield Select(
                    [(v, v) for v in JDK_VERSIONS], value="openjdk11",
                    allow_blank=False, id="jdk-version",
                )
                yield Select(
                    [(i, i) for i in JVM_IMPLS], value="hotspot",
                    allow_blank=False, id="jvm-impl",
                )
                yield Button("🔍 Suggest", id="btn-suggest", classes="action-btn btn-primary")
            yield SuggestionView(id="suggestion")
        yield Footer()

    def set_document(self, text: str) -> None:
        # Update in place; recomposing would drop the loaded entries
        self.document = text
        if self.is_mounted:
            self.query_one("#runtime-doc", Markdown).update(text)

    def on_mount(self) -> None:
        self.query_one("#suggestion", SuggestionView).show_waiting()
        self.replay_pending()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-suggest":
            self.query_one("#suggestion", SuggestionView).show_waiting()
            self._send({
                "command": "requestJdkInfo",
                "jdkVersion": self.query_one("#jdk-version", Select).value,
                "jvmImpl": self.query_one("#jvm-impl", Select).value,
            })

    def apply_message(self, message: OutboundMessage) -> None:
        if isinstance(message, ShowJavaRuntimeEntries):
            self.query_one("#runtime-table", JavaRuntimeTable).load_entries(message.entries)
        elif isinstance(message, ApplyJdkInfo):
            self.query_one("#suggestion", SuggestionView).show_info(message.jdk_info)


def split_sections(document: str) -> Tuple[str, List[Tuple[str, str, str]]]:
    """
    Split a Markdown document on ``## `` headings.

    Returns the intro text and a list of ``(tab_id, title, body)``.
    """
    parts = re.split(r"^## +(.+)$", document, flags=re.MULTILINE)
    intro, rest = parts[0], parts[1:]
    sections = []
    for title, body in zip(rest[0::2], rest[1::2]):
        tab_id = re.sub(r"[^a-z0-9]+", "-", title.strip().lower()).strip("-")
        sections.append((tab_id, title.strip(), body.strip()))
    return intro.strip(), sections


class GuideScreen(PanelScreen):
    """Extension guide / getting started: one tab per section."""

    def compose(self) -> ComposeResult:
        intro, sections = split_sections(self.document)
        yield Header(show_clock=True)
        with VerticalScroll(classes="panel"):
            yield Markdown(intro)
            with TabbedContent(id="guide-tabs"):
                for tab_id, title, body in sections:
                    with TabPane(title, id=tab_id):
                        yield Markdown(body)
        yield Footer()

    def on_tabbed_content_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        self._send({"command": "tabActivated", "tabId": event.pane.id})
