"""CLI entry point for Scissors."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from rich import print as rprint
from rich.syntax import Syntax
from rich.table import Table

from scissors_core.config import ScissorsConfig, load_config
from scissors_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from scissors_core.diff import (
    Change,
    Entry,
    Insert,
    Remove,
    RulesDiffer,
    RulesPatcher,
    Skip,
    TreeSink,
    decode_rules_diff,
    encode_diff,
)
from scissors_core.errors import ScissorsError
from scissors_core.logging_setup import configure_logging
from scissors_core.parser import create_parser
from scissors_core.rules import Keyframe, RuleTree, render_tree
from scissors_core.sync import RulesDiffMessage, Sheet, SheetWatcher

app = typer.Typer(
    name="scissors",
    help="Positional diff and patch for live stylesheets.",
)

config_app = typer.Typer(help="Manage Scissors configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: ScissorsConfig | None = None


def _get_config() -> ScissorsConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to scissors.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    configure_logging(_config.log_level, _config.log_format)


# ---------------------------------------------------------------------------
# Input helpers
# ---------------------------------------------------------------------------


def _css_type(path: Path) -> str:
    return "less" if path.suffix.lower() == ".less" else "css"


def _load_tree(path: Path, cfg: ScissorsConfig) -> RuleTree:
    """Read a .css, .less or .json (structured rules) file into a tree."""
    suffix = path.suffix.lower()
    text = path.read_text()
    if suffix == ".json":
        data = json.loads(text)
        if isinstance(data, dict) and data.get("type") == "openSheet":
            data = data.get("cssRules", [])
        return RuleTree.from_structured(data)
    if suffix in (".css", ".less"):
        parser = create_parser(suffix[1:], cfg.parser)
        return asyncio.run(parser.parse(text))
    raise ValueError(f"Unsupported input {path}: expected .css, .less or .json")


def _load_diff(path: Path) -> tuple[Entry, ...]:
    data = json.loads(path.read_text())
    if isinstance(data, dict) and data.get("type") == "rulesDiff":
        data = data.get("rulesDiff")
    return decode_rules_diff(data)


def _describe(entry: Entry) -> tuple[str, str]:
    """Operation name and a short detail for the table view."""
    if isinstance(entry, Skip):
        return "skip", ""
    if isinstance(entry, Remove):
        return "remove", f"{entry.count} rule(s)"
    if isinstance(entry, Insert):
        item = entry.item
        label = item.key_text if isinstance(item, Keyframe) else item.type
        return ("replace" if entry.remove else "insert"), label
    if isinstance(entry, Change):
        fields: list[Any] = []
        for attr in ("selector_text", "media_text", "name", "vendor_prefix", "key_text"):
            value = getattr(entry, attr)
            if value is not None:
                fields.append(f"{attr}={value!r}")
        if entry.style is not None:
            fields.append(f"style({len(entry.style)})")
        if entry.rules is not None:
            fields.append(f"rules[{len(entry.rules)}]")
        if entry.keyframes is not None:
            fields.append(f"keyframes[{len(entry.keyframes)}]")
        return "change", ", ".join(fields)
    raise TypeError(f"Unknown diff entry: {type(entry).__name__}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def diff(
    old: Path = typer.Argument(..., help="Old stylesheet (.css, .less or .json)"),
    new: Path = typer.Argument(..., help="New stylesheet (.css, .less or .json)"),
    fmt: str = typer.Option("json", "--format", "-f", help="Output format: json or table"),
) -> None:
    """Compute the positional diff that turns OLD into NEW."""
    cfg = _get_config()
    if fmt not in ("json", "table"):
        rprint(f"[red]Error:[/red] unknown format {fmt!r} (expected json or table)")
        raise typer.Exit(1)
    try:
        entries = RulesDiffer.diff(_load_tree(old, cfg), _load_tree(new, cfg))
    except (ScissorsError, ValueError, OSError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if fmt == "json":
        typer.echo(json.dumps(encode_diff(entries), indent=2))
        return

    if not entries:
        rprint("[green]No differences.[/green]")
        return
    table = Table(title=f"Diff ({len(entries)} entries)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Op", style="cyan")
    table.add_column("Skip", justify="right")
    table.add_column("Remove", justify="right")
    table.add_column("Detail")
    for i, entry in enumerate(entries):
        op, detail = _describe(entry)
        table.add_row(str(i), op, str(entry.skip), str(entry.remove), detail)
    rprint(table)


@app.command()
def patch(
    tree: Path = typer.Argument(..., help="Stylesheet to patch (.css, .less or .json)"),
    diff_file: Path = typer.Argument(..., help="Wire diff (list or rulesDiff envelope)"),
    fmt: str = typer.Option("css", "--format", "-f", help="Output format: css or json"),
    output: str | None = typer.Option(None, "--output", "-o", help="Write result to file"),
) -> None:
    """Apply a wire diff to a stylesheet."""
    cfg = _get_config()
    if fmt not in ("css", "json"):
        rprint(f"[red]Error:[/red] unknown format {fmt!r} (expected css or json)")
        raise typer.Exit(1)
    try:
        rules = _load_tree(tree, cfg)
        entries = _load_diff(diff_file)
    except (ScissorsError, ValueError, OSError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    report = RulesPatcher.apply(TreeSink(rules.rules), entries)
    text = render_tree(rules) if fmt == "css" else json.dumps(rules.to_json(), indent=2)

    if output:
        Path(output).write_text(text + "\n")
        rprint(
            f"[green]Wrote[/green] {output} "
            f"({report.applied} changed, {report.inserted} inserted, {report.removed} removed)"
        )
    else:
        typer.echo(text)
    if not report.clean:
        rprint(f"[yellow]Warning:[/yellow] {report.missing} target(s) missing, diff may not match")


@app.command()
def render(
    tree: Path = typer.Argument(..., help="Stylesheet (.css, .less or .json)"),
) -> None:
    """Print the CSS text of a stylesheet as scissors sees it."""
    cfg = _get_config()
    try:
        rules = _load_tree(tree, cfg)
    except (ScissorsError, ValueError, OSError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    typer.echo(render_tree(rules))


async def _watch(path: Path, name: str, cfg: ScissorsConfig) -> None:
    parser = create_parser(_css_type(path), cfg.parser)
    sheet = await Sheet.from_source(name, path.read_text(), parser)
    typer.echo(sheet.to_open_message().dump())

    loop = asyncio.get_running_loop()
    changed = asyncio.Event()
    watcher = SheetWatcher(
        path,
        callback=lambda _kind, _src: loop.call_soon_threadsafe(changed.set),
        patterns=cfg.watch.patterns,
        ignore_parts=cfg.watch.ignore_parts,
    )
    watcher.start()
    try:
        while True:
            await changed.wait()
            changed.clear()
            try:
                text = path.read_text()
            except OSError as e:
                rprint(f"[yellow]Skipping unreadable {path}:[/yellow] {e}")
                continue
            entries = await sheet.update(text, parser)
            if entries:
                message = RulesDiffMessage(sheet_name=name, rules_diff=encode_diff(entries))
                typer.echo(message.dump())
    finally:
        watcher.stop()


@app.command()
def watch(
    path: Path = typer.Argument(..., help="Stylesheet file to watch"),
    name: str | None = typer.Option(None, "--name", "-n", help="Sheet name (default: file name)"),
) -> None:
    """Emit openSheet, then one rulesDiff JSON line per effective change."""
    cfg = _get_config()
    if not path.is_file():
        rprint(f"[red]Error:[/red] {path} is not a file")
        raise typer.Exit(1)
    try:
        asyncio.run(_watch(path, name or path.name, cfg))
    except (ScissorsError, OSError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        rprint("[dim]Stopped.[/dim]")


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default scissors.yaml in current directory."""
    target = Path("scissors.yaml")
    if target.exists() and not force:
        rprint("[yellow]scissors.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
