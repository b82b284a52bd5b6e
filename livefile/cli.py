"""CLI entry point for livefile."""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax

from livefile.config import DEFAULT_CONFIG_TEMPLATE, LiveFileConfig, load_config
from livefile.live_file import LiveFile

app = typer.Typer(
    name="livefile",
    help="Keep a file's content in memory and reload it when it changes.",
)

config_app = typer.Typer(help="Manage livefile configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: LiveFileConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _configure_logging(cfg: LiveFileConfig) -> None:
    handler = logging.StreamHandler()
    if cfg.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("livefile")
    root.handlers[:] = [handler]
    root.setLevel(_LOG_LEVELS[cfg.log_level])


def _get_config() -> LiveFileConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to livefile.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    _configure_logging(_config)


def _syntax(path: Path, content: str) -> Syntax:
    return Syntax(content, Syntax.guess_lexer(str(path), content))


@app.command()
def show(
    path: Path = typer.Argument(..., help="File to load"),
    timeout: float = typer.Option(5.0, "--timeout", help="Seconds to wait for the first read"),
) -> None:
    """Load a file once through LiveFile and print its content."""
    cfg = _get_config()
    done = threading.Event()
    errors: list[BaseException] = []

    def on_error(error: BaseException) -> None:
        errors.append(error)
        done.set()

    with LiveFile.from_config(
        path, cfg, on_reload=lambda _content: done.set(), on_error=on_error
    ) as live:
        if not done.wait(timeout):
            rprint(f"[red]Error:[/red] timed out reading {live.path}")
            raise typer.Exit(1)
        if live.content is None:
            rprint(f"[red]Error:[/red] {escape(str(errors[0])) if errors else 'read failed'}")
            raise typer.Exit(1)
        rprint(_syntax(live.path, live.content))


@app.command()
def watch(
    path: Path = typer.Argument(..., help="File to watch"),
    delay: Annotated[
        float | None, typer.Option("--delay", "-d", help="Override watcher_delay (seconds)")
    ] = None,
) -> None:
    """Print the file every time it is reloaded, until Ctrl+C."""
    cfg = _get_config()
    if delay is not None:
        if delay < 0:
            rprint("[red]Error:[/red] --delay must be >= 0")
            raise typer.Exit(1)
        cfg = cfg.model_copy(update={"watcher_delay": delay})

    reloads = 0

    def on_reload(content: str) -> None:
        nonlocal reloads
        reloads += 1
        rprint(
            Panel(
                _syntax(live_path, content),
                title=f"{live_path.name} (reload #{reloads})",
                border_style="blue",
            )
        )

    def on_error(error: BaseException) -> None:
        rprint(f"[red]Error:[/red] {escape(str(error))}")

    live_path = Path(path).resolve()
    rprint(f"[bold]Watching[/bold] {live_path}")
    rprint(f"[dim]Delay: {int(cfg.watcher_delay * 1000)}ms | Ctrl+C to stop[/dim]")
    live = LiveFile.from_config(live_path, cfg, on_reload=on_reload, on_error=on_error)
    try:
        while True:
            time.sleep(0.5)
    except KeyboardInterrupt:
        rprint("\n[dim]Watch stopped.[/dim]")
    finally:
        live.destroy()


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default livefile.yaml in current directory."""
    target = Path("livefile.yaml")
    if target.exists() and not force:
        rprint("[yellow]livefile.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
