"""Code Architect command line interface.

Generates project blueprints with a hosted LLM, enhances uploaded project
archives, and manages the local history and settings.

Usage::

    code-architect generate "Todo App" --stack vanilla --zip ./out
    code-architect enhance ./my-project.zip -i "Add input validation"
    code-architect history list
    code-architect settings set google.api_key AIza...
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from collections.abc import Callable, Coroutine, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from code_architect.archive import (
    display_language,
    encode_blueprint,
    read_archive_file,
    write_blueprint,
)
from code_architect.archive.codec import safe_relative_path
from code_architect.config import AppSettings, ProviderName, default_data_dir
from code_architect.errors import ArchitectError, RateLimitError
from code_architect.generator import (
    DEFAULT_STACK,
    STACK_LABELS,
    STACK_PROMPTS,
    BlueprintGenerator,
)
from code_architect.models import Blueprint, FileRecord, GenerationStage, HistoryItem
from code_architect.storage import HistoryStore, JsonKeyValueStore, SettingsStore
from code_architect.utils import (
    console,
    format_duration,
    format_size,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

_STAGE_MESSAGES: dict[GenerationStage, str] = {
    GenerationStage.BUILDING_PROMPT: "Building prompt...",
    GenerationStage.AWAITING_PROVIDER: "Waiting for the AI provider...",
    GenerationStage.NORMALIZING: "Parsing the blueprint...",
}


class CommandError(Exception):
    """A user-facing CLI failure that is not an :class:`ArchitectError`."""


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _is_hidden(path: str) -> bool:
    return any(part.startswith(".") for part in path.split("/") if part)


def render_blueprint(blueprint: Blueprint, settings: AppSettings) -> None:
    """Print the description, folder tree, and file list of *blueprint*."""
    console.print(
        Panel(
            escape(blueprint.description or "No description."),
            title=f"[bold]{escape(blueprint.project_name)}[/bold]",
            style="cyan",
        )
    )
    if blueprint.structure:
        console.print(Panel(escape(blueprint.structure), title="Structure", style="dim"))

    table = Table(title="Files", show_header=True, header_style="bold cyan")
    table.add_column("Path")
    table.add_column("Language", style="dim")
    table.add_column("Size", justify="right")

    hidden = 0
    for record in blueprint.files:
        if not settings.show_hidden and _is_hidden(record.path):
            hidden += 1
            continue
        table.add_row(
            escape(record.path),
            record.language,
            format_size(len(record.content.encode("utf-8"))),
        )
    console.print(table)
    languages = ", ".join(
        f"{escape(language)} ({count})" for language, count in blueprint.language_counts().items()
    )
    console.print(f"[dim]Languages: {languages}[/dim]")
    if hidden:
        console.print(f"[dim]{hidden} hidden file(s) not shown (settings: show_hidden).[/dim]")


def render_file(record: FileRecord, settings: AppSettings) -> None:
    """Print one file's content, highlighted according to the settings."""
    lexer = display_language(
        record.path, record.language, syntax_highlight=settings.syntax_highlight
    )
    console.print(
        Panel(
            Syntax(record.content, lexer, word_wrap=settings.word_wrap, line_numbers=True),
            title=escape(record.path),
        )
    )


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _stores(args: argparse.Namespace) -> tuple[SettingsStore, HistoryStore, AppSettings]:
    """Open the stores under ``--data-dir`` and return the effective settings."""
    kv = JsonKeyValueStore(args.data_dir)
    settings_store = SettingsStore(kv)
    settings = AppSettings.from_env(settings_store.load())
    return settings_store, HistoryStore(kv, limit=settings.history_limit), settings


def _apply_provider_overrides(settings: AppSettings, args: argparse.Namespace) -> AppSettings:
    if args.provider or args.model:
        return settings.with_provider(args.provider or settings.active_provider, args.model)
    return settings


def _run_request(
    generator_call: Callable[[BlueprintGenerator], Coroutine[Any, Any, Blueprint]],
) -> Blueprint:
    """Run a generator coroutine factory under a status spinner."""
    started = time.monotonic()
    with console.status("Starting...") as status:
        def _on_stage(stage: GenerationStage) -> None:
            if stage in _STAGE_MESSAGES:
                status.update(_STAGE_MESSAGES[stage])

        blueprint = asyncio.run(generator_call(BlueprintGenerator(on_stage=_on_stage)))
    console.print(f"[dim]Completed in {format_duration(time.monotonic() - started)}[/dim]")
    return blueprint


def _deliver(
    blueprint: Blueprint,
    settings: AppSettings,
    history: HistoryStore,
    args: argparse.Namespace,
    success_message: str,
) -> None:
    """Show a finished blueprint, save it to history, and write requested outputs."""
    render_blueprint(blueprint, settings)

    if settings.auto_save:
        item = history.add(blueprint)
        console.print(f"[dim]Saved to history as {item.id}[/dim]")

    if args.output:
        try:
            written = asyncio.run(write_blueprint(blueprint, args.output))
        except ValueError as exc:
            raise CommandError(f"Refusing to write blueprint: {exc}") from exc
        except OSError as exc:
            raise CommandError(f"Could not write blueprint files: {exc}") from exc
        console.print(
            f"  Wrote {len(written)} file(s) under [bold]{escape(str(args.output))}[/bold]"
        )

    if args.zip:
        _write_zip(blueprint, Path(args.zip))

    print_success(success_message)


def _write_zip(blueprint: Blueprint, directory: Path) -> Path:
    exported = encode_blueprint(blueprint)
    try:
        target = directory.joinpath(*safe_relative_path(exported.filename).parts)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(exported.data)
    except ValueError as exc:
        raise CommandError(f"Refusing to write archive: {exc}") from exc
    except OSError as exc:
        raise CommandError(f"Could not write archive {exported.filename}: {exc}") from exc
    console.print(f"  Wrote [bold]{escape(str(target))}[/bold] ({format_size(exported.size)})")
    return target


def _require_history_item(history: HistoryStore, item_id: str) -> HistoryItem:
    item = history.get(item_id)
    if item is None:
        raise CommandError(f"No history item with id {item_id}.")
    return item


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_generate(args: argparse.Namespace) -> None:
    _, history, settings = _stores(args)
    settings = _apply_provider_overrides(settings, args)
    if args.stack not in STACK_PROMPTS:
        print_warning(f"Unknown stack {args.stack!r}; using {DEFAULT_STACK}.")

    console.print(
        f"Generating [bold]{escape(args.name)}[/bold] "
        f"({escape(args.stack)}) with [cyan]{settings.active_provider.value}[/cyan]"
    )
    blueprint = _run_request(
        lambda generator: generator.generate(args.name, args.stack, settings)
    )
    _deliver(blueprint, settings, history, args, "Blueprint generated successfully")


def cmd_enhance(args: argparse.Namespace) -> None:
    _, history, settings = _stores(args)
    settings = _apply_provider_overrides(settings, args)

    if args.history_id:
        item = _require_history_item(history, args.history_id)
        files, name = item.blueprint.files, item.project_name
    elif args.archive:
        decoded = asyncio.run(read_archive_file(args.archive))
        files, name = decoded.files, decoded.guessed_name
        console.print(
            f"  Read {len(decoded.files)} file(s) from {escape(args.archive)}, "
            f"skipped {len(decoded.skipped)}"
        )
    else:
        raise CommandError("Pass an archive path or --history ID to enhance.")

    if not files:
        raise CommandError("No supported source files found to enhance.")

    project_name = args.name or name or "Enhanced Project"
    blueprint = _run_request(
        lambda generator: generator.enhance(files, args.instructions, project_name, settings)
    )
    _deliver(blueprint, settings, history, args, "Project enhanced successfully")


def cmd_import(args: argparse.Namespace) -> None:
    _, _, settings = _stores(args)
    decoded = asyncio.run(read_archive_file(args.archive))

    preview = Blueprint(project_name=decoded.guessed_name, files=decoded.files)
    render_blueprint(preview, settings)

    if decoded.skipped:
        table = Table(title="Skipped", show_header=True, header_style="bold yellow")
        table.add_column("Path")
        table.add_column("Reason", style="dim")
        for entry in decoded.skipped:
            table.add_row(escape(entry.path), entry.reason.value)
        console.print(table)


def cmd_export(args: argparse.Namespace) -> None:
    _, history, _ = _stores(args)
    item = _require_history_item(history, args.id)
    _write_zip(item.blueprint, Path(args.output))
    print_success("Export complete")


def cmd_history(args: argparse.Namespace) -> None:
    _, history, settings = _stores(args)

    if args.history_command == "list":
        items = history.load()
        if not items:
            console.print("[dim]No generated blueprints yet.[/dim]")
            return
        table = Table(title=f"Project History ({len(items)})", header_style="bold cyan")
        table.add_column("Id", style="dim")
        table.add_column("Project")
        table.add_column("Created")
        table.add_column("Files", justify="right")
        for item in items:
            created = datetime.fromtimestamp(item.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")
            table.add_row(item.id, escape(item.project_name), created, str(len(item.blueprint.files)))
        console.print(table)

    elif args.history_command == "show":
        item = _require_history_item(history, args.id)
        if args.file:
            record = item.blueprint.get_file(args.file)
            if record is None:
                raise CommandError(f"{args.file} is not part of {item.project_name}.")
            render_file(record, settings)
        else:
            render_blueprint(item.blueprint, settings)

    elif args.history_command == "delete":
        if not history.delete(args.id):
            raise CommandError(f"No history item with id {args.id}.")
        print_success("History item deleted")

    elif args.history_command == "clear":
        history.clear()
        print_success("History cleared")


def cmd_settings(args: argparse.Namespace) -> None:
    settings_store, _, settings = _stores(args)

    if args.settings_command == "show":
        flat: dict[str, str] = {}
        for key, value in settings.redacted().items():
            if isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    flat[f"{key}.{sub_key}"] = str(sub_value)
            else:
                flat[key] = str(value)
        print_summary_table(flat, title="Settings")

    elif args.settings_command == "set":
        try:
            settings_store.update(args.key, args.value)
        except KeyError as exc:
            raise CommandError(f"Unknown setting: {args.key}") from exc
        except ValidationError as exc:
            reason = exc.errors()[0].get("msg", "invalid value")
            raise CommandError(f"Invalid value for {args.key}: {reason}") from exc
        print_success(f"Updated {args.key}")

    elif args.settings_command == "reset":
        settings_store.reset()
        print_success("Settings reset to defaults")


def cmd_stacks(args: argparse.Namespace) -> None:
    table = Table(title="Stacks", header_style="bold cyan")
    table.add_column("Id")
    table.add_column("Label")
    table.add_column("Constraints", style="dim")
    for stack_id, instruction in STACK_PROMPTS.items():
        label = STACK_LABELS.get(stack_id, stack_id)
        if stack_id == DEFAULT_STACK:
            label += " (default)"
        table.add_row(stack_id, label, instruction)
    console.print(table)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _add_provider_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--provider",
        choices=[p.value for p in ProviderName],
        default=None,
        help="Use this provider for the request instead of the saved one",
    )
    parser.add_argument("--model", default=None, help="Override the provider's model id")


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the generated files under OUTPUT/<project name>",
    )
    parser.add_argument(
        "--zip",
        default=None,
        metavar="DIR",
        help="Write <project name>-blueprint.zip into DIR",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-architect",
        description="Code Architect -- AI project blueprint generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  code-architect generate "Todo App" --stack vanilla --zip ./out\n'
            "  code-architect enhance ./my-project.zip -i \"Add tests\"\n"
            "  code-architect settings set google.api_key <KEY>\n"
        ),
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for history and settings (default: ~/.code-architect)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a new project blueprint")
    gen.add_argument("name", help="Project name")
    gen.add_argument(
        "--stack", "-s",
        default=DEFAULT_STACK,
        help=f"Stack id (default: {DEFAULT_STACK}); see 'code-architect stacks'",
    )
    _add_provider_options(gen)
    _add_output_options(gen)
    gen.set_defaults(handler=cmd_generate)

    enh = sub.add_parser("enhance", help="Improve an existing project")
    enh.add_argument("archive", nargs="?", default=None, help="Project .zip to enhance")
    enh.add_argument("--history", dest="history_id", default=None, help="Enhance a history item")
    enh.add_argument("--instructions", "-i", default="", help="What to change")
    enh.add_argument("--name", default=None, help="Project name (default: archive name)")
    _add_provider_options(enh)
    _add_output_options(enh)
    enh.set_defaults(handler=cmd_enhance)

    imp = sub.add_parser("import", help="Preview the files read from a project .zip")
    imp.add_argument("archive")
    imp.set_defaults(handler=cmd_import)

    exp = sub.add_parser("export", help="Export a history item as a .zip")
    exp.add_argument("id")
    exp.add_argument("--output", "-o", default=".", help="Destination directory")
    exp.set_defaults(handler=cmd_export)

    hist = sub.add_parser("history", help="Browse saved blueprints")
    hist_sub = hist.add_subparsers(dest="history_command", required=True)
    hist_sub.add_parser("list")
    show = hist_sub.add_parser("show")
    show.add_argument("id")
    show.add_argument("--file", "-f", default=None, help="Print one file's content")
    delete = hist_sub.add_parser("delete")
    delete.add_argument("id")
    hist_sub.add_parser("clear")
    hist.set_defaults(handler=cmd_history)

    conf = sub.add_parser("settings", help="Show or change settings")
    conf_sub = conf.add_subparsers(dest="settings_command", required=True)
    conf_sub.add_parser("show")
    setter = conf_sub.add_parser("set")
    setter.add_argument("key", help="Setting name, dotted for provider fields")
    setter.add_argument("value")
    conf_sub.add_parser("reset")
    conf.set_defaults(handler=cmd_settings)

    stacks = sub.add_parser("stacks", help="List the available stacks")
    stacks.set_defaults(handler=cmd_stacks)

    return parser


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``code-architect`` / ``python -m code_architect``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.data_dir is None:
        args.data_dir = default_data_dir()

    try:
        args.handler(args)
    except RateLimitError as exc:
        print_error(str(exc))
        sys.exit(1)
    except (ArchitectError, CommandError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)
    except KeyboardInterrupt:
        print_warning("Cancelled.")
        sys.exit(130)


if __name__ == "__main__":
    main()
