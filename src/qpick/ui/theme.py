"""Theme, color definitions and the prompt_toolkit style."""

from __future__ import annotations

from prompt_toolkit.styles import Style

# ── Color palette ──

COLORS = {
    "primary": "#E67E22",
    "text_muted": "#999999",
    "selected_fg": "#000000",
    "selected_bg": "#FFFFFF",
    "error": "#E74C3C",
    "warning": "#F39C12",
}


def build_style() -> Style:
    """Build the application-wide prompt_toolkit style."""
    c = COLORS
    return Style.from_dict(
        {
            "prompt": f"bold {c['primary']}",
            "query": "",
            "status": c["text_muted"],
            "status.error": c["error"],
            "status.searching": c["warning"],
            "row": "",
            "row.selected": f"fg:{c['selected_fg']} bg:{c['selected_bg']}",
            "row.failed": f"italic {c['error']}",
        }
    )


def format_count(count: int, noun: str = "result") -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"
