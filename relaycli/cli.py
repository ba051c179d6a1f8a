"""CLI commands for relaycli."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from relaycli import __version__

if TYPE_CHECKING:
    from relaycli.core.config import RelayConfig
    from relaycli.core.environment import AdbEnvironment

# Load .env file from current directory or parent directories
load_dotenv()

app = typer.Typer(
    name="relay",
    help="Relay messages from an HTTP source into a chat app through its UI",
    no_args_is_help=True,
)
console = Console()

LOG_ROOT = Path(".relay") / "logs"


def _create_log_folder(root: Path = LOG_ROOT) -> Path:
    """Create timestamped folder for a verbose run.

    Returns:
        Path to created folder (e.g., .relay/logs/2026-01-17_14-30-25/)
    """
    folder = root / datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"relay version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """relay - chat message relay over Android UI automation."""
    pass


def _load_config(device: str | None, verbose: bool, require_source: bool = False) -> RelayConfig:
    """Load config, apply CLI overrides and pick a device."""
    from relaycli.core.config import ConfigLoader, setup_logging
    from relaycli.core.device_controller import DeviceController
    from relaycli.core.errors import ConfigError

    try:
        config = ConfigLoader.load(require_source=require_source)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if verbose:
        config.verbose = True
    if config.verbose:
        log_file = setup_logging(verbose=True, log_dir=_create_log_folder())
        if log_file:
            console.print(f"[dim]Verbose logging -> {log_file}[/dim]")

    if device:
        config.device = device

    if not config.device:
        devices_list = DeviceController.list_devices()
        if not devices_list:
            console.print("[red]Error:[/red] No devices found. Run 'relay devices' to check.")
            raise typer.Exit(2)
        config.device = devices_list[0]["id"]

    return config


def _make_environment(config: RelayConfig) -> AdbEnvironment:
    from relaycli.core.device_controller import DeviceController
    from relaycli.core.environment import AdbEnvironment

    if not config.device:
        console.print("[red]Error:[/red] No device selected")
        raise typer.Exit(2)
    return AdbEnvironment(DeviceController(config.device))


def _launch_target(env: AdbEnvironment, config: RelayConfig) -> None:
    """Bring the chat app to the foreground."""
    try:
        env.controller.launch_app(config.target_package)
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] Could not launch {config.target_package}: {e}")
        raise typer.Exit(1)
    console.print(f"[dim]Launched {config.target_package}[/dim]")


@app.command()
def devices() -> None:
    """List connected devices."""
    from relaycli.core.device_controller import DeviceController

    try:
        devices_list = DeviceController.list_devices()
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not devices_list:
        console.print("[yellow]No devices found[/yellow]")
        console.print("\nEnsure your device is connected:")
        console.print("  Android: adb devices")
        raise typer.Exit(1)

    table = Table(title="Connected Devices")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Status", style="yellow")

    for device in devices_list:
        table.add_row(
            device.get("id", "unknown"),
            device.get("name", "unknown"),
            device.get("status", "unknown"),
        )

    console.print(table)


@app.command()
def dump(
    device: str | None = typer.Option(None, "--device", "-d", help="Device ID"),
    verbose: bool = typer.Option(False, "--verbose", help="Write debug log"),
) -> None:
    """Print every node of the current window, then inputs and buttons."""
    config = _load_config(device, verbose)
    env = _make_environment(config)

    try:
        snapshot = env.snapshot()
    except Exception as e:
        console.print(f"[red]Error:[/red] Could not read current window: {e}")
        raise typer.Exit(1)

    console.print(
        f"[bold]{snapshot.package or 'unknown'}[/bold] "
        f"{snapshot.activity or ''} - {len(snapshot)} nodes"
    )

    table = Table(title="Nodes")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Class", style="green")
    table.add_column("Text")
    table.add_column("Label")
    table.add_column("Flags", style="yellow")

    for index, element in enumerate(snapshot):
        flags = "".join([
            "C" if element.clickable else "-",
            "E" if element.editable else "-",
            "S" if element.scrollable else "-",
        ])
        table.add_row(
            str(index),
            element.resource_id,
            element.short_class,
            element.text,
            element.content_desc,
            flags,
        )
    console.print(table)

    editable = snapshot.editable_elements()
    console.print(f"\n[bold]{len(editable)} editable nodes[/bold]")
    for element in editable:
        console.print(f"  EditText: id={element.resource_id}, text={element.text}")

    buttons = snapshot.buttons()
    console.print(f"\n[bold]{len(buttons)} button nodes[/bold]")
    for element in buttons:
        console.print(f"  Button: id={element.resource_id}, text={element.text}")


@app.command()
def send(
    message: str = typer.Argument(..., help="Message to send in the open chat"),
    device: str | None = typer.Option(None, "--device", "-d", help="Device ID"),
    verbose: bool = typer.Option(False, "--verbose", help="Write debug log"),
) -> None:
    """Send a message in the currently open chat."""
    from relaycli.core.sender import MessageSender

    config = _load_config(device, verbose)
    env = _make_environment(config)
    sender = MessageSender(config.sender)

    with console.status("Sending..."):
        success = asyncio.run(sender.send(env.snapshot, message))

    if success:
        console.print("[green]Message sent[/green]")
    else:
        console.print("[red]Failed:[/red] message was not sent")
        raise typer.Exit(1)


@app.command()
def flow(
    contact: str = typer.Argument(..., help="Contact label in the chat list"),
    message: str = typer.Argument(..., help="Message to send"),
    device: str | None = typer.Option(None, "--device", "-d", help="Device ID"),
    simple: bool = typer.Option(False, "--simple", help="Type and send in one step"),
    launch: bool = typer.Option(False, "--launch", help="Start the chat app first"),
    timeout: float = typer.Option(60.0, "--timeout", "-t", help="Give up after N seconds"),
    verbose: bool = typer.Option(False, "--verbose", help="Write debug log"),
) -> None:
    """Open a contact's chat and send a message, step by step."""
    from relaycli.core.errors import InvalidGoalError
    from relaycli.core.flows import build_send_message_flow, build_simple_send_flow
    from relaycli.core.state_machine import StateMachine

    builder = build_simple_send_flow if simple else build_send_message_flow
    try:
        steps = builder(contact, message)
    except InvalidGoalError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    config = _load_config(device, verbose)
    env = _make_environment(config)
    if launch:
        _launch_target(env, config)
    machine = StateMachine(steps, tag="Flow")

    deadline = time.monotonic() + timeout
    last_status = ""
    while not machine.is_completed and time.monotonic() < deadline:
        try:
            machine.process_event(env.snapshot())
        except Exception as e:
            console.print(f"[yellow]Snapshot failed:[/yellow] {e}")
        status = machine.status()
        if status != last_status:
            console.print(f"[dim]{status}[/dim]")
            last_status = status
        if not machine.is_completed:
            time.sleep(config.watch_interval)

    if machine.is_completed:
        console.print(f"[green]Sent to {contact}[/green]")
    else:
        console.print(f"[red]Timed out:[/red] {machine.status()}")
        raise typer.Exit(1)


@app.command()
def run(
    device: str | None = typer.Option(None, "--device", "-d", help="Device ID"),
    url: str | None = typer.Option(None, "--url", "-u", help="Payload source URL"),
    contact: str | None = typer.Option(None, "--contact", "-c", help="Contact for flow mode"),
    mode: str = typer.Option("sender", "--mode", "-m", help="sender or flow"),
    launch: bool = typer.Option(False, "--launch", help="Start the chat app first"),
    verbose: bool = typer.Option(False, "--verbose", help="Write debug log"),
) -> None:
    """Poll the payload source and relay each message until Ctrl-C."""
    from relaycli.core.errors import ConfigError
    from relaycli.core.relay import RelayService

    config = _load_config(device, verbose)
    if url:
        config.source_url = url
    if contact:
        config.contact = contact

    def on_sent(text: str, success: bool) -> None:
        if success:
            console.print(f"[green]Sent:[/green] {text}")
        else:
            console.print(f"[red]Failed:[/red] {text}")

    env = _make_environment(config)
    try:
        service = RelayService(
            env,
            config,
            mode=mode,  # type: ignore[arg-type]
            on_sent=on_sent,
        )
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if launch:
        _launch_target(env, config)
    console.print(
        f"Relaying [cyan]{config.source_url}[/cyan] -> [cyan]{config.device}[/cyan] "
        f"({mode} mode). Press Ctrl-C to stop."
    )
    try:
        asyncio.run(service.run())
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped[/dim]")


if __name__ == "__main__":
    app()
