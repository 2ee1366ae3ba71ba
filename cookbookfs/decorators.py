"""Decorators for cookbookfs CLI commands."""

import functools
import logging
from typing import Callable, Any

import httpx
import typer
from rich.console import Console

from cookbookfs.exceptions import CookbookFrozenError, FileSystemError, NotFoundError

logger = logging.getLogger(__name__)
console = Console()


def handle_fs_errors(func: Callable) -> Callable:
    """
    Decorator to handle common VFS and server errors in CLI commands.

    Centralizes error handling for:
    - CookbookFrozenError: Version frozen on the server (suggests --force)
    - NotFoundError: Cookbook or path doesn't exist
    - FileSystemError: Any other failed VFS operation
    - httpx.HTTPError: Server unreachable or request rejected
    - General exceptions: Unexpected errors
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        try:
            return func(*args, **kwargs)
        except CookbookFrozenError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            console.print("[yellow]Tip: Use --force to overwrite a frozen cookbook version[/yellow]")
            raise typer.Exit(code=1)
        except NotFoundError as e:
            console.print(f"[bold red]Error:[/bold red] Not found: {e}")
            raise typer.Exit(code=1)
        except FileSystemError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=1)
        except httpx.HTTPError as e:
            console.print(f"[bold red]Error:[/bold red] Server request failed: {e}")
            raise typer.Exit(code=1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            raise typer.Exit(code=130)
        except typer.Exit:
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            console.print(f"[bold red]Unexpected error:[/bold red] {e}")
            raise typer.Exit(code=1)

    return wrapper
