import click
from rich.console import Console
from rich.table import Table

from nutbridge.nut.client import NUTClient
from nutbridge.nut.session import validate_port
from nutbridge.nut.status import SEVERITY_LABELS, parse_status
from .utils import handle_async_command

console = Console()

@click.group(name='ups')
def ups_cli():
    """Inspect a NUT daemon directly."""
    pass

@ups_cli.command(name='list')
@click.option('--host', default='127.0.0.1', help='NUT server host.')
@click.option('--port', default='3493', help='NUT server port.')
@handle_async_command
async def list_ups(host: str, port: str) -> None:
    """Lists the UPS devices a NUT server provides."""
    client = NUTClient(host=host, port=validate_port(port))
    await client.connect()
    try:
        devices = await client.list_ups()
    finally:
        client.close()

    if not devices:
        console.print(f"[yellow]No UPS devices found on {host}:{port}[/yellow]")
        return
    table = Table(title=f"UPS devices on {host}:{port}")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for name, description in devices.items():
        table.add_row(name, description)
    console.print(table)

@ups_cli.command(name='vars')
@click.argument('ups_name')
@click.option('--host', default='127.0.0.1', help='NUT server host.')
@click.option('--port', default='3493', help='NUT server port.')
@handle_async_command
async def list_vars(ups_name: str, host: str, port: str) -> None:
    """Prints the variables of one UPS and its classified status."""
    client = NUTClient(host=host, port=validate_port(port))
    await client.connect()
    try:
        varlist = await client.list_vars(ups_name)
    finally:
        client.close()

    table = Table(title=f"{ups_name}@{host}")
    table.add_column("Variable", style="cyan")
    table.add_column("Value")
    for key, value in varlist.items():
        table.add_row(key, value)
    console.print(table)

    reading = parse_status(varlist.get("ups.status", ""))
    active = [name for name, found in reading.flags.items() if found]
    console.print(f"Status flags: {', '.join(active) or 'none'}")
    console.print(f"Severity: {int(reading.severity)} ({SEVERITY_LABELS[reading.severity]})")
