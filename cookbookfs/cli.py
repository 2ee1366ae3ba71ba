import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import CookbookFSConfig, get_config, load_config, set_config
from .decorators import handle_fs_errors
from .rest import ServerAPI

# Initialize Rich Console
console = Console()

# Configure logging to use Rich's RichHandler
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)
logger = logging.getLogger(__name__)

app = typer.Typer(help="Treat a cookbook server as a directory tree")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose mode"),
):
    """
    cookbookfs - browse and upload cookbooks on a cookbook server.
    """
    config = load_config()
    set_config(config)
    if verbose or config.cli.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        console.print("[bold green]Verbose mode enabled.[/bold green]")


def _server_api(config: CookbookFSConfig, url: Optional[str] = None) -> ServerAPI:
    return ServerAPI(
        url or config.server.url,
        {
            "timeout": config.server.timeout,
            "verify_ssl": config.server.verify_ssl,
            "client_name": config.server.client_name,
        },
    )


def _repo_path(config: CookbookFSConfig, repo: Optional[Path]) -> Path:
    if repo is not None:
        return repo.expanduser()
    if config.repo.chef_repo_path:
        return Path(config.repo.chef_repo_path).expanduser()
    return Path.cwd()


@app.command(name="ls")
@handle_fs_errors
def ls(
    path: str = typer.Argument("/cookbooks", help="Server path to list"),
    server_url: Optional[str] = typer.Option(None, "--server-url", "-s", help="Server URL (overrides config)"),
):
    """List a directory on the server.

    Examples:
        cookbookfs ls
        cookbookfs ls /cookbooks/apache2
    """
    from .exceptions import NotFoundError
    from .vfs import PathResolver, ServerRootNode

    config = get_config()
    with _server_api(config, server_url) as rest:
        root = ServerRootNode(rest)
        node = PathResolver(root).resolve_directory(path)
        if node is None:
            raise NotFoundError(root, reason=f"{path}: No such directory")

        table = Table(title=f"{rest.url}{node.get_path()}")
        table.add_column("Name", style="cyan")
        table.add_column("Type")
        for child in node.list_children():
            table.add_row(child.name + ("/" if child.is_dir() else ""), child.node_type.value)
        console.print(table)


@app.command()
@handle_fs_errors
def upload(
    names: Optional[List[str]] = typer.Argument(None, help="Cookbooks to upload (default: all)"),
    repo: Optional[Path] = typer.Option(None, "--repo", "-r", help="Repository holding cookbooks/"),
    server_url: Optional[str] = typer.Option(None, "--server-url", "-s", help="Server URL (overrides config)"),
    freeze: bool = typer.Option(False, "--freeze", help="Freeze the uploaded versions"),
    force: bool = typer.Option(False, "--force", help="Overwrite frozen versions"),
):
    """Upload cookbooks from a local repository to the server.

    Examples:
        cookbookfs upload
        cookbookfs upload apache2 mysql --freeze
        cookbookfs upload apache2 --force --repo ~/chef-repo
    """
    from .exceptions import CookbookFrozenError
    from .sync import upload_cookbooks
    from .vfs import RepositoryRootNode, ServerRootNode, UploadOptions

    config = get_config()
    repo_path = _repo_path(config, repo)
    options = UploadOptions(freeze=freeze, force=force)

    with _server_api(config, server_url) as rest:
        local_dir = RepositoryRootNode(repo_path).make_child_entry("cookbooks")
        remote_dir = ServerRootNode(rest).make_child_entry("cookbooks")
        results = upload_cookbooks(local_dir, remote_dir, names, options)

    failed = 0
    for result in results:
        if result.ok:
            console.print(f"[green]✓[/green] Uploaded {result.name}")
        else:
            failed += 1
            console.print(f"[red]✗[/red] {result.name}: {result.error}")

    if not results:
        console.print(f"[yellow]No cookbooks found under {repo_path / 'cookbooks'}[/yellow]")
    if failed:
        if any(isinstance(r.error, CookbookFrozenError) for r in results):
            console.print("[yellow]Tip: Use --force to overwrite a frozen cookbook version[/yellow]")
        raise typer.Exit(code=1)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    # Server settings
    set_server_url: Optional[str] = typer.Option(None, "--server-url", help="Set server URL"),
    set_client_name: Optional[str] = typer.Option(None, "--client-name", help="Set client name"),
    set_timeout: Optional[float] = typer.Option(None, "--timeout", help="Set request timeout in seconds"),
    set_verify_ssl: Optional[bool] = typer.Option(None, "--verify-ssl/--no-verify-ssl", help="Verify TLS certificates"),
    # Repository settings
    set_repo_path: Optional[str] = typer.Option(None, "--repo-path", help="Set default repository path"),
    set_cookbook_path: Optional[str] = typer.Option(None, "--cookbook-path", help="Set cookbook path"),
    # Staging settings
    set_staging_mode: Optional[str] = typer.Option(None, "--staging-mode", help="Set staging mode (symlink, copy)"),
):
    """
    View or edit cookbookfs configuration.

    Configuration is stored at ~/.config/cookbookfs/config.json (or ~/.cookbookfs/config.json).

    Examples:
        cookbookfs config --show
        cookbookfs config --server-url https://chef.example.com/organizations/acme
        cookbookfs config --staging-mode copy
    """
    from .config import get_config_path, update_config

    has_settings = any([
        set_server_url, set_client_name, set_timeout is not None, set_verify_ssl is not None,
        set_repo_path, set_cookbook_path, set_staging_mode,
    ])

    if show or not has_settings:
        cfg = load_config()
        console.print(f"\n[bold]cookbookfs Configuration[/bold]")
        console.print(f"[dim]Location: {get_config_path()}[/dim]\n")

        console.print("[bold cyan]Server Settings:[/bold cyan]")
        console.print(f"  URL:         {cfg.server.url}")
        console.print(f"  Client:      {cfg.server.client_name or '[dim]not set[/dim]'}")
        console.print(f"  Timeout:     {cfg.server.timeout}")
        console.print(f"  Verify SSL:  {cfg.server.verify_ssl}")

        console.print("\n[bold cyan]Repository Settings:[/bold cyan]")
        console.print(f"  Repo Path:     {cfg.repo.chef_repo_path or '[dim]not set[/dim]'}")
        console.print(f"  Cookbook Path: {cfg.repo.cookbook_path or '[dim]not set[/dim]'}")

        console.print("\n[bold cyan]Staging Settings:[/bold cyan]")
        console.print(f"  Mode:        {cfg.staging.mode}\n")
        return

    try:
        update_config(
            server_url=set_server_url,
            server_client_name=set_client_name,
            server_timeout=set_timeout,
            server_verify_ssl=set_verify_ssl,
            repo_chef_repo_path=set_repo_path,
            repo_cookbook_path=set_cookbook_path,
            staging_mode=set_staging_mode,
        )
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[green]Configuration saved to {get_config_path()}[/green]")


if __name__ == "__main__":
    app()
