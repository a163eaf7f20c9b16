"""CLI helper utilities for twoauth."""

from rich_toolkit import RichToolkit, RichToolkitTheme
from rich_toolkit.styles import TaggedStyle


def get_rich_toolkit() -> RichToolkit:
    theme = RichToolkitTheme(
        style=TaggedStyle(tag_width=11),
        theme={
            "tag.title": "white on #1d9bf0",
            "tag": "white on #0f6fae",
            "placeholder": "grey85",
            "text": "white",
            "selected": "#1d9bf0",
            "result": "grey85",
            "progress": "on #0f6fae",
            # Status tags
            "error": "bold red",
            "success": "bold green",
            "warning": "bold yellow",
            "info": "blue",
            # Flow steps
            "version": "cyan",
            "request": "magenta",
            "access": "bright_cyan",
            "authorize": "bright_blue",
            "tokens": "yellow",
        },
    )

    return RichToolkit(theme=theme)


def bold(text: str) -> str:
    return f"[bold]{text}[/bold]"


def dim(text: str) -> str:
    return f"[dim]{text}[/dim]"


def code(text: str) -> str:
    return f"[cyan]{text}[/cyan]"

