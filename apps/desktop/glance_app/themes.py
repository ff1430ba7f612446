"""Details window palettes selected by ``ui.theme``."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Palette:
    name: str
    background: str
    text_primary: str
    text_secondary: str
    accent: str


THEMES: dict[str, Palette] = {
    "dark": Palette(
        name="dark",
        background="#131B33",
        text_primary="#F4F7FF",
        text_secondary="#A9B5D1",
        accent="#35D9FF",
    ),
    "light": Palette(
        name="light",
        background="#F7F9FC",
        text_primary="#1A253F",
        text_secondary="#4F5B73",
        accent="#0B7FAB",
    ),
}


def get_palette(theme: str | None) -> Palette | None:
    """Palette for ``theme``; ``auto`` and unknown names follow the OS style."""
    return THEMES.get(theme or "auto")


def stylesheet(theme: str | None) -> str:
    palette = get_palette(theme)
    if palette is None:
        return ""
    return (
        f"QWidget {{ background-color: {palette.background}; color: {palette.text_primary}; }}\n"
        f"QLabel#permission {{ color: {palette.accent}; }}\n"
        f"QLabel#clock {{ color: {palette.text_secondary}; }}"
    )
