import logging
from typing import Any, Optional

from rich.console import Console
from rich.panel import Panel
from rich.box import Box, HEAVY, ROUNDED, SIMPLE
from rich.text import Text
from rich.table import Table

from keyauth.domain.interfaces.user_interface import UserInterface
from keyauth.domain.models.replies import Embed, Reply

logger = logging.getLogger(__name__)


class ConsoleDisplay(UserInterface):
    """Renders replies and status messages on a rich Console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_reply(self, reply: Reply, **kwargs: Any) -> None:
        """Renders a reply: embeds as a titled panel, plain text as-is."""
        if reply.embed is not None:
            self.console.print(self.render_embed(reply.embed))
        if reply.text:
            # Replies use chat markdown (`key`), not rich markup.
            self.console.print(Text(reply.text))

    @staticmethod
    def render_embed(embed: Embed) -> Panel:
        """Builds a rich Panel mirroring a chat embed.

        The description comes first, followed by a two-column table of fields.
        """
        body = Table.grid(padding=(0, 1))
        body.add_column(style="bold")
        body.add_column()
        if embed.description:
            body.add_row(Text(embed.description), "")
        for embed_field in embed.fields:
            body.add_row(Text(embed_field.name), Text(embed_field.value))
        return Panel(
            body,
            title=Text(embed.title, style=f"bold {embed.color}"),
            title_align="left",
            border_style=embed.color,
            box=ROUNDED,
            padding=(0, 1),
        )

    def get_prompt(self, prompt_message: str = "> ") -> str:
        return self.console.input(f"[bold green]{prompt_message}[/bold green]")

    @staticmethod
    def _status_panel(message: str, label: str, color: str, box: Box) -> Panel:
        return Panel(
            Text(message, style="white"),
            title=f"[bold {color}]{label}[/bold {color}]",
            border_style=color,
            box=box,
            padding=(0, 1),
        )

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        self.console.print(self._status_panel(error_message, "Error", "red", HEAVY))

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self.console.print(self._status_panel(info_message, "Info", "blue", SIMPLE))

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Shown to caller: {warning_message}")
        self.console.print(self._status_panel(warning_message, "Warning", "yellow", HEAVY))
