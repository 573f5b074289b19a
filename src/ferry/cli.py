"""CLI entrypoint for ferry."""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ferry import events
from ferry.config import Settings, load_settings, resolve_config_path, save_settings
from ferry.errors import ProfileNotFound
from ferry.events import CallbackChannel
from ferry.history import JsonHistory
from ferry.logging import setup_logging
from ferry.models import UploaderOption, UploaderProfile, collapse_options
from ferry.orchestrator import UploadOrchestrator
from ferry.presenter import (
    Clipboard,
    ConsoleNotifier,
    MemoryClipboard,
    ResultPresenter,
    TkClipboard,
)
from ferry.profiles import ProfileManager, ProfileResolver
from ferry.uploaders.registry import default_registry

app = typer.Typer(
    name="ferry",
    help="Upload files to remote storage through named uploader profiles",
    no_args_is_help=True,
)
console = Console()

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Settings file (default ~/.ferry/settings.yaml)"),
]


def _load(config: Path | None) -> tuple[Path, Settings]:
    path = resolve_config_path(config)
    try:
        settings = load_settings(path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    setup_logging(settings.log_level)
    return path, settings


def _clipboard(settings: Settings) -> Clipboard:
    if not settings.preferences.auto_copy:
        return MemoryClipboard()
    try:
        return TkClipboard()
    except Exception as e:
        console.print(
            f"[yellow]System clipboard unavailable ({escape(str(e))}), "
            "links are only shown[/yellow]"
        )
        settings.preferences = settings.preferences.model_copy(update={"auto_copy": False})
        return MemoryClipboard()


def build_orchestrator(
    settings: Settings,
    channel: CallbackChannel | None = None,
    clipboard: Clipboard | None = None,
    show_progress: bool = False,
) -> UploadOrchestrator:
    """Wire an orchestrator from loaded settings."""
    notifier = ConsoleNotifier(console)
    clipboard = clipboard or _clipboard(settings)
    resolver = ProfileResolver(ProfileManager(settings), default_registry(settings.request_timeout))
    return UploadOrchestrator(
        resolver=resolver,
        history=JsonHistory(settings.history_path),
        channel=channel or CallbackChannel(),
        notifier=notifier,
        presenter=ResultPresenter(settings.preferences, notifier, clipboard),
        show_progress=show_progress,
    )


async def _upload_and_wait(orchestrator: UploadOrchestrator, coro):
    result = await coro
    await orchestrator.presenter.wait_pending()
    return result


def _print_failures(records):
    if not records:
        return
    console.print("\n[red]Failed uploads:[/red]")
    for record in records[:10]:
        console.print(f"  {escape(record.path)}: {escape(record.error_message or '')}")


@app.command()
def upload(
    files: Annotated[list[Path], typer.Argument(help="Files to upload")],
    profile: Annotated[
        str | None, typer.Option("--profile", "-p", help="Uploader profile id")
    ] = None,
    directory: Annotated[
        str | None, typer.Option("--directory", "-d", help="Remote directory")
    ] = None,
    progress: Annotated[bool, typer.Option("--progress", help="Show a progress bar")] = False,
    config: ConfigOption = None,
):
    """Upload files with a profile (the default profile if none is given)."""
    _, settings = _load(config)
    orchestrator = build_orchestrator(settings, show_progress=progress)

    paths = [str(f) for f in files]
    result = asyncio.run(
        _upload_and_wait(orchestrator, orchestrator.upload(paths, profile, directory))
    )
    if result is None:
        raise typer.Exit(1)

    for record in result.successes:
        console.print(f"[green]{escape(record.path)}[/green] -> {escape(record.url or '')}")
    _print_failures(result.failures)
    if result.failures:
        raise typer.Exit(1)


@app.command()
def reupload(
    batch: Annotated[Path, typer.Argument(help='JSON list of {"profileId", "path"} items')],
    config: ConfigOption = None,
):
    """Upload files that may each belong to a different profile."""
    _, settings = _load(config)

    with open(batch, encoding="utf-8") as f:
        items = json.load(f)
    pairs = [(item.get("profileId") or item.get("id"), item["path"]) for item in items]

    orchestrator = build_orchestrator(settings)
    results = asyncio.run(_upload_and_wait(orchestrator, orchestrator.upload_by_profiles(pairs)))

    failed = False
    for result in results:
        if result is None or result.failures:
            failed = True
        if result is not None:
            _print_failures(result.failures)
    if failed:
        raise typer.Exit(1)


def _print_file_list(files: list[dict[str, Any]]):
    if not files:
        console.print("[dim]No files[/dim]")
        return
    table = Table(show_header=True, header_style="bold")
    columns = list(dict.fromkeys(key for item in files for key in item))
    for column in columns:
        table.add_column(escape(column))
    for item in files:
        table.add_row(*(escape(str(item.get(column, ""))) for column in columns))
    console.print(table)


@app.command("ls")
def list_files(
    profile: Annotated[str, typer.Argument(help="Uploader profile id")],
    directory: Annotated[str | None, typer.Argument(help="Remote directory")] = None,
    config: ConfigOption = None,
):
    """List remote files, if the profile's backend supports it."""
    _, settings = _load(config)
    channel = CallbackChannel()
    channel.subscribe(events.FILE_LIST_GET_REPLY, _print_file_list)
    orchestrator = build_orchestrator(settings, channel=channel, clipboard=MemoryClipboard())
    asyncio.run(orchestrator.list_files(profile, directory))


@app.command("rm")
def delete_files(
    profile: Annotated[str, typer.Argument(help="Uploader profile id")],
    names: Annotated[list[str], typer.Argument(help="Remote file names")],
    config: ConfigOption = None,
):
    """Delete remote files, if the profile's backend supports it."""
    _, settings = _load(config)
    orchestrator = build_orchestrator(settings, clipboard=MemoryClipboard())
    if not asyncio.run(orchestrator.delete_files(profile, names)):
        console.print("[red]Nothing deleted[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Deleted {len(names)} files[/green]")


@app.command("mkdir")
def create_directory(
    profile: Annotated[str, typer.Argument(help="Uploader profile id")],
    path: Annotated[str, typer.Argument(help="Remote directory to create")],
    config: ConfigOption = None,
):
    """Create a remote directory, if the profile's backend supports it."""
    _, settings = _load(config)
    orchestrator = build_orchestrator(settings, clipboard=MemoryClipboard())
    if not asyncio.run(orchestrator.create_directory(profile, path)):
        console.print("[red]Directory not created[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Created {escape(path)}[/green]")


@app.command()
def history(
    clear: Annotated[bool, typer.Option("--clear", help="Clear history entries")] = False,
    ids: Annotated[list[str] | None, typer.Option("--id", help="Entry id to clear")] = None,
    limit: Annotated[int, typer.Option(help="Entries to show")] = 20,
    config: ConfigOption = None,
):
    """Show or clear the upload history."""
    _, settings = _load(config)
    store = JsonHistory(settings.history_path)

    if clear:
        remaining = store.clear(ids or None)
        console.print(f"[green]History cleared, {len(remaining)} entries left[/green]")
        return

    records = store.get()
    table = Table(title=f"Upload history ({len(records)})", show_header=True, header_style="bold")
    table.add_column("Date")
    table.add_column("File")
    table.add_column("Profile", style="dim")
    table.add_column("Result")
    for record in records[:limit]:
        date = datetime.fromtimestamp(record.date / 1000).strftime("%Y-%m-%d %H:%M")
        if record.url:
            outcome = escape(record.url)
        else:
            outcome = f"[red]{escape(record.error_message or '')}[/red]"
        table.add_row(date, escape(record.path), escape(record.uploader_profile_id), outcome)
    console.print(table)


@app.command()
def profiles(config: ConfigOption = None):
    """List uploader profiles."""
    _, settings = _load(config)
    manager = ProfileManager(settings)
    default_id = manager.get_default_id()

    table = Table(show_header=True, header_style="bold")
    table.add_column("")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Uploader")
    for profile in manager.get_all():
        marker = "*" if profile.id == default_id else ""
        table.add_row(
            marker, escape(profile.id), escape(profile.name), escape(profile.uploader_name)
        )
    console.print(table)


OptionsArg = Annotated[
    list[str] | None,
    typer.Option("--option", "-o", help="Backend option as name=value (repeatable)"),
]


def _parse_options(values: list[str] | None) -> list[UploaderOption]:
    options = []
    for value in values or []:
        name, sep, option_value = value.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Expected name=value, got {value!r}", param_hint="--option")
        options.append(UploaderOption(name=name, value=option_value))
    return options


@app.command("add-profile")
def add_profile(
    uploader: Annotated[str, typer.Argument(help="Backend name, see `ferry uploaders`")],
    options: OptionsArg = None,
    name: Annotated[str, typer.Option("--name", "-n", help="Display name")] = "",
    profile_id: Annotated[
        str | None, typer.Option("--id", help="Profile id (generated if omitted)")
    ] = None,
    default: Annotated[bool, typer.Option("--default", help="Make it the default")] = False,
    config: ConfigOption = None,
):
    """Add an uploader profile."""
    path, settings = _load(config)
    if uploader not in default_registry(settings.request_timeout).names():
        console.print(f"[red]Uploader backend not found: {escape(uploader)}[/red]")
        raise typer.Exit(1)

    profile = UploaderProfile(
        id=profile_id or "",
        name=name,
        uploader_name=uploader,
        uploader_options=_parse_options(options),
        is_default=default,
    )
    try:
        profile = ProfileManager(settings).add(profile)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    save_settings(settings, path)
    console.print(f"[green]Added profile {escape(profile.id)}[/green]")


@app.command("update-profile")
def update_profile(
    profile: Annotated[str, typer.Argument(help="Uploader profile id")],
    options: OptionsArg = None,
    name: Annotated[str | None, typer.Option("--name", "-n", help="Display name")] = None,
    config: ConfigOption = None,
):
    """Rename a profile or change some of its backend options."""
    path, settings = _load(config)
    manager = ProfileManager(settings)
    existing = manager.get(profile)
    if existing is None:
        console.print(f"[red]Uploader profile not found: {escape(profile)}[/red]")
        raise typer.Exit(1)

    merged = collapse_options(existing.uploader_options)
    merged.update(collapse_options(_parse_options(options)))
    update: dict[str, Any] = {
        "uploader_options": [UploaderOption(name=k, value=v) for k, v in merged.items()]
    }
    if name is not None:
        update["name"] = name
    manager.update(existing.model_copy(update=update))
    save_settings(settings, path)
    console.print(f"[green]Updated profile {escape(profile)}[/green]")


@app.command("rm-profile")
def remove_profile(
    profile: Annotated[str, typer.Argument(help="Uploader profile id")],
    config: ConfigOption = None,
):
    """Delete an uploader profile."""
    path, settings = _load(config)
    try:
        ProfileManager(settings).delete(profile)
    except ProfileNotFound as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
    save_settings(settings, path)
    console.print(f"[green]Deleted profile {escape(profile)}[/green]")


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Uploader profile id")],
    config: ConfigOption = None,
):
    """Make a profile the default one."""
    path, settings = _load(config)
    manager = ProfileManager(settings)
    if manager.get(profile) is None:
        console.print(f"[red]Uploader profile not found: {escape(profile)}[/red]")
        raise typer.Exit(1)
    manager.set_default(profile)
    save_settings(settings, path)
    console.print(f"[green]Default profile is now {escape(profile)}[/green]")


@app.command()
def uploaders():
    """List available uploader backends and their options."""
    for backend in default_registry().describe():
        console.print(f"[bold]{backend['name']}[/bold]")
        for option in backend["options"]:
            required = " (required)" if option["required"] else ""
            default = f" [dim]default: {option['value']}[/dim]" if option["value"] else ""
            console.print(f"  {option['name']}: {option['label']}{required}{default}")


@app.command()
def version():
    """Show version information."""
    from ferry import __version__

    console.print(f"ferry version {__version__}")


if __name__ == "__main__":
    app()
