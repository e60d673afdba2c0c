"""
ui/widgets.py
=============
Reusable Textual widgets for the Java runtime panels.

Provides:
  - RuntimeStatusIndicator – colored valid / invalid / checking badge
  - JavaRuntimeTable       – JDK candidates with validity and hints
  - SuggestionView         – release suggestion from the advisor
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from rich.text import Text
from textual.reactive import reactive
from textual.widgets import DataTable, Static


# ──────────────────────────────────────────────
#  Status Indicator
# ──────────────────────────────────────────────

class RuntimeStatusIndicator(Static):
    """Displays whether the JDK in use is valid."""

    is_valid: reactive[Optional[bool]] = reactive(None)

    def render(self) -> Text:
        if self.is_valid is None:
            return Text("● CHECKING JDK…", style="bold yellow")
        if self.is_valid:
            return Text("● JDK OK", style="bold green")
        return Text("● NO USABLE JDK", style="bold red")


# ──────────────────────────────────────────────
#  Entries Table
# ──────────────────────────────────────────────

class JavaRuntimeTable(DataTable):
    """Table of JDK candidates in wire shape (see JavaRuntimeEntry.to_dict)."""

    def on_mount(self) -> None:
        self.cursor_type = "row"
        self.add_columns("Source", "Path", "Status", "Hint")

    def load_entries(self, entries: List[Dict[str, Any]]) -> None:
        self.clear()
        for entry in entries:
            if entry.get("isValid"):
                status = Text("✅ Valid", style="green")
            else:
                status = Text("❌ Invalid", style="red")
            self.add_row(
                entry.get("name", ""),
                entry.get("path") or Text("(not set)", style="dim"),
                status,
                entry.get("hint") or "",
            )


# ──────────────────────────────────────────────
#  Suggestion View
# ──────────────────────────────────────────────

class SuggestionView(Static):
    """Shows the latest-release metadata returned by the advisor."""

    DEFAULT_CSS = """
    SuggestionView {
        height: auto;
        border: solid $secondary;
        padding: 0 1;
    }
    """

    def show_waiting(self) -> None:
        self.update(Text("Fetching suggestion…", style="dim"))

    def show_info(self, jdk_info: Any) -> None:
        if not isinstance(jdk_info, dict):
            self.update(Text(json.dumps(jdk_info, indent=2)))
            return

        text = Text()
        text.append(str(jdk_info.get("release_name", "Latest release")), style="bold cyan")
        for binary in jdk_info.get("binaries", [])[:1]:
            text.append(f"\n{binary.get('binary_name', '')}")
            size = binary.get("binary_size")
            if size:
                text.append(f"  ({size / (1024 * 1024):.0f} MB)", style="dim")
            link = binary.get("binary_link")
            if link:
                text.append(f"\n{link}", style="underline")
        self.update(text)
