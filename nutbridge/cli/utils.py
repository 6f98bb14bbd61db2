import asyncio
import functools
import sys

from rich.console import Console

from nutbridge.nut.client import NUTConfigurationError, NUTError

console = Console()


def handle_async_command(async_func):
    """Run an async click command, turning NUT failures into exit code 1."""
    @functools.wraps(async_func)
    def wrapper(*args, **kwargs):
        try:
            return asyncio.run(async_func(*args, **kwargs))
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            sys.exit(1)
        except NUTConfigurationError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)
        except NUTError as e:
            console.print(f"[red]NUT server error: {e}[/red]")
            sys.exit(1)
    return wrapper
