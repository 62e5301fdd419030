"""
Console output for wpstack.

Everything is written to stderr through one rich Console: ordinary log
records go through RichHandler, while the stage banners, success marks
and resource actions are printed directly so they stand out.

Example:
    from wpstack.logging import get_stack_logger

    logger = get_stack_logger(__name__)
    logger.step("Ensuring LEMP is ready")
    logger.action("create", "pkg:nginx", "Resource does not exist")
    logger.success("Nginx is running")
    logger.warning("Could not enable UFW (continuing)")
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

STACK_THEME = Theme({
    "log.time": "dim cyan",
    "log.level.debug": "dim blue",
    "log.level.info": "green",
    "log.level.warning": "yellow",
    "log.level.error": "bold red",
    "wpstack.step": "bold blue",
    "wpstack.success": "bold green",
    "wpstack.action.create": "green",
    "wpstack.action.update": "yellow",
    "wpstack.action.delete": "red",
})

ACTION_SYMBOLS = {
    "create": "+",
    "update": "~",
    "delete": "-",
}

console = Console(theme=STACK_THEME, stderr=True)


def setup_logging(level: str = "INFO", show_time: bool = True) -> None:
    """
    Send log records to the console at the given level.

    The handler is installed once; later calls only change the level.

    Args:
        level: DEBUG, INFO, WARNING or ERROR
        show_time: Prefix records with a timestamp
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(isinstance(h, RichHandler) for h in root.handlers):
        return

    # Messages carry paths and command output; never read them as markup
    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class StackLogger(logging.LoggerAdapter):
    """
    Logger with the pipeline's extra output verbs.

    debug/info/warning/error behave as on any logger; step, success and
    action also print a styled line on the console.
    """

    def step(self, message: str) -> None:
        """Announce the start of a pipeline stage."""
        self.info(message)
        console.print(f"\n[wpstack.step]==>[/wpstack.step] {escape(message)}")

    def success(self, message: str) -> None:
        self.debug(message)
        console.print(f"[wpstack.success]✓[/wpstack.success] {escape(message)}")

    def action(self, action: str, resource_id: str, details: Optional[str] = None) -> None:
        """
        Show a change about to be applied to a resource.

        Args:
            action: create, update or delete
            resource_id: e.g. "pkg:nginx"
            details: Why the change is needed
        """
        action = action.lower()
        symbol = ACTION_SYMBOLS.get(action, "•")
        style = f"wpstack.action.{action}"

        line = f"[{style}]{symbol}[/{style}] {escape(resource_id)}"
        if details:
            line += f" [dim]({escape(details)})[/dim]"

        self.debug(f"{action} {resource_id}")
        console.print(line)


def get_stack_logger(name: str) -> StackLogger:
    """StackLogger for a module (pass __name__)."""
    return StackLogger(get_logger(name), {})
