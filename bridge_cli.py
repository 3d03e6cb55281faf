#!/usr/bin/env python3
"""FlightGear Serial Bridge CLI.

Connects a cockpit device on a serial port to FlightGear's generic protocol
over UDP.

Examples:
    # Smart (change-only) forwarding, FlightGear on the same machine
    python bridge_cli.py start --com=COM19 --udp-in-port=5500 --udp-out-port=5501

    # Plain byte mirroring at 115200 baud
    python bridge_cli.py start --com /dev/ttyUSB0 --baud 115200 \\
        --udp-in-port 5500 --udp-out-port 5501 --copypast

    # Settings from a file, port overridden on the command line
    python bridge_cli.py start --config cockpit.yaml --com COM4
"""
from __future__ import annotations

import asyncio
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

# Ensure the fgbridge package is importable
if __name__ == "__main__":
    import os
    sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fgbridge import __version__
from fgbridge.bridge import Bridge
from fgbridge.config import BridgeConfig, build_config, check_serial_port, load_config_file
from fgbridge.errors import ConfigError
from fgbridge.forwarder import ForwarderMode

from serial.tools import list_ports

app = typer.Typer(
    name="fg-serial-bridge",
    help="FlightGear Serial Bridge - relay a cockpit device's serial line to FlightGear over UDP",
    add_completion=False,
)
console = Console()

STATS_INTERVAL_S = 60


def setup_logging(debug: bool = False) -> None:
    """Configure logging with rich output."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def _watch_stdin(loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event) -> None:
    """Set `stop_event` when the operator types `quit`."""
    for line in sys.stdin:
        if line.strip().lower() == "quit":
            loop.call_soon_threadsafe(stop_event.set)
            return


def _print_config(config: BridgeConfig) -> None:
    table = Table(title="Bridge Configuration", show_header=True)
    table.add_column("Side", style="cyan")
    table.add_column("Direction", style="green")
    table.add_column("Connection", style="yellow")
    table.add_row("Serial", "device <-> bridge", f"{config.serial_port} @ {config.baudrate} baud")
    table.add_row("UDP in", "FlightGear -> bridge", f"0.0.0.0:{config.udp_in_port}")
    table.add_row("UDP out", "bridge -> FlightGear", f"{config.udp_out_ip}:{config.udp_out_port}")
    table.add_row("Forwarder", config.mode.value, "copy everything" if config.mode is ForwarderMode.BASIC else "changes only")
    console.print(table)
    console.print()


async def run_bridge(bridge: Bridge) -> None:
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def signal_handler():
        console.print("\n[yellow]Shutting down...[/yellow]")
        stop_event.set()

    try:
        loop.add_signal_handler(signal.SIGINT, signal_handler)
        loop.add_signal_handler(signal.SIGTERM, signal_handler)
    except NotImplementedError:
        # Windows doesn't support add_signal_handler
        pass

    threading.Thread(target=_watch_stdin, args=(loop, stop_event), daemon=True).start()

    try:
        await bridge.start()
        console.print("[bold green]Bridge running. Type 'quit' or press Ctrl+C to stop.[/bold green]")
        while not stop_event.is_set() and not bridge.forwarder.failed.is_set():
            try:
                await asyncio.wait_for(bridge.wait(stop_event), timeout=STATS_INTERVAL_S)
            except asyncio.TimeoutError:
                stats = bridge.get_stats()
                console.print(
                    f"[dim]Stats: {stats['serial_bytes_in']} serial bytes in, "
                    f"{stats['datagrams_sent']} datagrams sent, "
                    f"{stats['serial_writes']} serial writes, "
                    f"{stats['suppressed']} suppressed[/dim]"
                )
    finally:
        await bridge.stop()
        console.print("[green]Bridge stopped.[/green]")


@app.command()
def start(
    com: Optional[List[str]] = typer.Option(
        None,
        "--com",
        help="The serial port name to listen to (e.g. COM19, /dev/ttyUSB0)",
    ),
    baud: Optional[List[str]] = typer.Option(
        None,
        "--baud",
        help="The serial port baud rate to use (default 9600)",
    ),
    udp_in_port: Optional[List[str]] = typer.Option(
        None,
        "--udp-in-port",
        help="The port to listen to for data from FlightGear",
    ),
    udp_out_port: Optional[List[str]] = typer.Option(
        None,
        "--udp-out-port",
        help="The port to send data on to FlightGear",
    ),
    udp_out_ip: Optional[List[str]] = typer.Option(
        None,
        "--udp-out-ip",
        help="The IP to send data on to FlightGear (default 127.0.0.1)",
    ),
    copypast: bool = typer.Option(
        False,
        "--copypast",
        help="Copy all data as-is instead of forwarding only records that changed",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Print more verbose messages",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="JSON/YAML file with default settings",
    ),
) -> None:
    """Start relaying between the serial device and FlightGear."""
    try:
        file_values = load_config_file(config) if config else None
        cfg = build_config(
            com=com,
            baud=baud,
            udp_in_port=udp_in_port,
            udp_out_port=udp_out_port,
            udp_out_ip=udp_out_ip,
            copypast=copypast,
            debug=debug,
            file_values=file_values,
        )
        check_serial_port(cfg.serial_port)
    except ConfigError as e:
        for problem in e.problems:
            console.print(f"[red]Error: {problem}[/red]")
        raise typer.Exit(1)
    except (FileNotFoundError, RuntimeError, ValueError) as e:
        console.print(f"[red]Error: could not load config {config}: {e}[/red]")
        raise typer.Exit(1)

    setup_logging(cfg.debug)
    _print_config(cfg)
    console.print(Panel.fit(f"[bold green]FlightGear Serial Bridge {__version__}[/bold green]"))

    bridge = Bridge(cfg)
    try:
        asyncio.run(run_bridge(bridge))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        console.print(f"[red]Bridge failed: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def ports() -> None:
    """List available serial ports."""
    found = list_ports.comports()
    if not found:
        console.print("No serial ports found")
        raise typer.Exit()
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Device")
    table.add_column("Description")
    for p in found:
        table.add_row(p.device, p.description or "")
    console.print(table)


if __name__ == "__main__":
    app()
