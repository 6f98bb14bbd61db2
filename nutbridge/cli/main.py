import asyncio
import sys

import click
import httpx
import uvicorn
from rich.console import Console

from nutbridge.app import create_app
from nutbridge.config import Settings, get_settings
from nutbridge.utils.logging import setup_logging
from .ups import ups_cli

console = Console()


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enables verbose mode.')
@click.option('--quiet', '-q', is_flag=True, help='Enables quiet mode.')
@click.pass_context
def app(ctx, verbose, quiet):
    """
    nutbridge - NUT UPS state bridge CLI.
    """
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet

    if verbose:
        setup_logging(force=True, level="DEBUG")
    elif quiet:
        setup_logging(force=True, level="ERROR")
    else:
        setup_logging()


async def _serve(settings: Settings, host: str, port: int) -> int:
    """Serve the API until it is stopped or the adapter asks to terminate."""
    api = create_app(settings)
    server = uvicorn.Server(uvicorn.Config(api, host=host, port=port, log_config=None))
    terminated = asyncio.create_task(api.state.adapter.wait_terminated())
    serving = asyncio.create_task(server.serve())
    done, _ = await asyncio.wait({terminated, serving}, return_when=asyncio.FIRST_COMPLETED)
    if terminated in done:
        server.should_exit = True
        await serving
        return terminated.result()
    terminated.cancel()
    return 0


@app.command()
@click.option('--host', default=None, help='Address the API listens on.')
@click.option('--port', default=None, type=int, help='Port the API listens on.')
def run(host, port):
    """Polls the UPS and serves its states over HTTP."""
    settings = get_settings()
    host = host or settings.API_HOST
    port = port or settings.API_PORT
    console.print(
        f"[bold blue]Bridging {settings.own_ups_name}:{settings.HOST_PORT} on http://{host}:{port}[/bold blue]"
    )
    exit_code = asyncio.run(_serve(settings, host, port))
    if exit_code:
        console.print(f"[red]Terminated by the adapter (exit code {exit_code})[/red]")
        sys.exit(exit_code)


@app.command()
@click.argument('notifytype', required=False, envvar='NOTIFYTYPE')
@click.option('--ups', 'upsname', envvar='UPSNAME', help='UPS name as upsmon reports it (ups@host).')
@click.option('--url', default='http://127.0.0.1:8093', envvar='NUTBRIDGE_URL', help='Base URL of the nutbridge API.')
def notify(notifytype, upsname, url):
    """Forwards an upsmon notification (use as NOTIFYCMD)."""
    if not notifytype or not upsname:
        raise click.UsageError("NOTIFYTYPE and --ups (or the NOTIFYTYPE/UPSNAME environment) are required")
    payload = {"command": "notify", "message": {"notifytype": notifytype, "upsname": upsname}}
    try:
        response = httpx.post(f"{url.rstrip('/')}/api/messages", json=payload, timeout=10.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        console.print(f"[red]❌ Failed to deliver {notifytype} for {upsname}: {e}[/red]")
        sys.exit(1)
    console.print(f"[green]✅ Delivered {notifytype} for {upsname}[/green]")


app.add_command(ups_cli, name='ups')

if __name__ == '__main__':
    app()
