#!/usr/bin/env python3
"""
main.py – Java Runtime Helper
=============================
Entry point: Textual application hosting the Java runtime, extension guide
and getting started panels, plus a headless check and a web JSON API.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Button, Footer, Header, Label

from java_runtime import (
    current_java_runtime,
    find_java_runtime_entries,
    runtime_validity,
    validate_java_runtime,
)
from panels import (
    EXT_GUIDE_PANEL,
    GETTING_STARTED_PANEL,
    PANELS,
    RUNTIME_PANEL,
    ExtensionContext,
    register_commands,
    restore_panel,
)
from settings import Settings
from ui.host import TextualPanelHost
from ui.widgets import RuntimeStatusIndicator

logger = logging.getLogger("java_runtime_helper")


# ──────────────────────────────────────────────
#  Logging
# ──────────────────────────────────────────────

LOG_DIR = Path("logs")


def setup_logging(level: str = "INFO", to_stdout: bool = True) -> None:
    LOG_DIR.mkdir(exist_ok=True)
    handlers: List[logging.Handler] = [
        logging.FileHandler(LOG_DIR / "java_runtime_helper.log", encoding="utf-8"),
    ]
    # The TUI owns the terminal; only headless / web modes log to stdout
    if to_stdout:
        handlers.append(logging.StreamHandler(sys.stdout))
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


# ──────────────────────────────────────────────
#  CLI
# ──────────────────────────────────────────────

PANEL_CHOICES = {
    "runtime": RUNTIME_PANEL.view_type,
    "ext-guide": EXT_GUIDE_PANEL.view_type,
    "getting-started": GETTING_STARTED_PANEL.view_type,
}

# Launcher button id → view type (widget ids cannot contain dots)
LAUNCH_BUTTONS = {f"open-{name}": view_type for name, view_type in PANEL_CHOICES.items()}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="☕  Java Runtime Helper – JDK discovery and setup panels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--config", default="config.json", help="Path to config.json")
    p.add_argument("--headless", action="store_true", help="Print JDK entries and exit")
    p.add_argument("--panel", choices=sorted(PANEL_CHOICES), default=None,
                   help="Panel to open on startup")
    p.add_argument("--web", action="store_true", help="Serve the web JSON API")
    p.add_argument("--port", type=int, default=5000, help="Web API port")
    return p.parse_args(argv)


# ──────────────────────────────────────────────
#  Panel State
# ──────────────────────────────────────────────

def load_open_panels(path: Path) -> List[str]:
    """Read the view types that were open when the app last exited."""
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read panel state %s: %s", path, exc)
        return []
    if not isinstance(data, dict) or not isinstance(data.get("open"), list):
        logger.warning("Ignoring malformed panel state %s", path)
        return []

    view_types: List[str] = []
    for view_type in data["open"]:
        if isinstance(view_type, str) and view_type in PANELS and view_type not in view_types:
            view_types.append(view_type)
    return view_types


def save_open_panels(path: Path, view_types: List[str]) -> None:
    try:
        path.write_text(json.dumps({"open": view_types}, indent=2), encoding="utf-8")
    except OSError as exc:
        logger.error("Could not save panel state %s: %s", path, exc)


# ──────────────────────────────────────────────
#  Main Application
# ──────────────────────────────────────────────

class JavaHelperApp(App):
    """Launcher for the Java panels."""

    TITLE = "☕ Java Runtime Helper"
    SUB_TITLE = "Terminal Edition"

    DEFAULT_CSS = """
    #launcher { padding: 1 2; }
    #launcher Button { width: 40; margin-bottom: 1; }
    .panel-title { text-style: bold; margin: 1 0; }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
        Binding("f2", f"open_panel('{RUNTIME_PANEL.view_type}')", "Runtime", show=True),
        Binding("f3", f"open_panel('{EXT_GUIDE_PANEL.view_type}')", "Guide", show=True),
        Binding("f4", f"open_panel('{GETTING_STARTED_PANEL.view_type}')", "Getting Started", show=True),
    ]

    def __init__(self, settings: Settings, open_panel: Optional[str] = None, **kw: Any) -> None:
        super().__init__(**kw)
        self.settings = settings
        self.host = TextualPanelHost(self)
        self.context = ExtensionContext(host=self.host, settings=settings)
        self.panel_commands = register_commands(self.context)
        self.state_path = Path(settings.get("panels.stateFile"))
        self._initial_panel = open_panel

    # ── Compose ────────────────────────────────

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="launcher"):
            yield RuntimeStatusIndicator(id="runtime-status")
            yield Label("Panels", classes="panel-title")
            yield Button("☕ Configure Java Runtime", id="open-runtime", variant="primary")
            yield Button("📘 Java Extension Guide", id="open-ext-guide")
            yield Button("🚀 Java Getting Started", id="open-getting-started")
        yield Footer()

    # ── Mount ──────────────────────────────────

    def on_mount(self) -> None:
        logger.info("App started – config: %s", self.settings.config_path)
        self.run_worker(self._refresh_status(), exit_on_error=False)

        for view_type in load_open_panels(self.state_path):
            restore_panel(self.context, self.host.create_surface(PANELS[view_type].spec))

        if self._initial_panel:
            self.action_open_panel(self._initial_panel)

    def on_unmount(self) -> None:
        open_panels = [v for v, slot in self.context.slots.items() if slot.is_open]
        save_open_panels(self.state_path, open_panels)
        self.context.dispose()

    async def _refresh_status(self) -> None:
        valid = await validate_java_runtime(self.settings)
        self.query_one("#runtime-status", RuntimeStatusIndicator).is_valid = valid

    # ── Actions ────────────────────────────────

    def action_open_panel(self, view_type: str) -> None:
        command = self.panel_commands.get(view_type)
        if command is None:
            self.notify(f"Unknown panel: {view_type}", severity="error")
            return
        command()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        view_type = LAUNCH_BUTTONS.get(event.button.id or "")
        if view_type:
            self.action_open_panel(view_type)


# ──────────────────────────────────────────────
#  Headless CLI
# ──────────────────────────────────────────────

def run_headless(settings: Settings) -> int:
    from rich.console import Console
    from rich.table import Table

    console = Console()
    console.print("\n[bold green]☕  Java Runtime Helper[/] (headless)\n")

    entries = asyncio.run(find_java_runtime_entries(settings))

    t = Table(title="JDK Candidates")
    t.add_column("Source", style="cyan")
    t.add_column("Path", style="white")
    t.add_column("Status")
    t.add_column("Hint", style="yellow")
    for entry in entries:
        status = "[green]✅ Valid[/]" if entry.is_valid else "[red]❌ Invalid[/]"
        t.add_row(entry.name, entry.path or "[dim](not set)[/]", status, entry.hint or "")
    console.print(t)

    valid = runtime_validity(entries)
    current = current_java_runtime(entries)
    if valid and current is not None:
        console.print(f"\n[bold]Java runtime:[/] 🟢 {current.name} ({current.path}) is usable\n")
    elif valid:
        console.print("\n[bold]Java runtime:[/] 🟢 usable\n")
    else:
        console.print("\n[bold]Java runtime:[/] 🔴 no usable JDK 11+ found\n")
    return 0 if valid else 1


# ──────────────────────────────────────────────
#  Entry Point
# ──────────────────────────────────────────────

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings(args.config)
    setup_logging(settings.get("log.level"), to_stdout=args.headless or args.web)

    if args.headless:
        return run_headless(settings)
    if args.web:
        from web_ui import run_server

        run_server(settings, port=args.port)
        return 0

    JavaHelperApp(settings, open_panel=PANEL_CHOICES.get(args.panel)).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
