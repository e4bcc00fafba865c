from rich.console import Console
from rich.markup import escape

console = Console(highlight=False, emoji=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True)

_verbose = False


def configure(color: bool = True, verbose: bool = False, quiet: bool = False):
    """Set up consoles for this run. Quiet keeps only errors."""
    global console, err_console, _verbose
    console = Console(highlight=False, emoji=False, soft_wrap=True, no_color=not color, quiet=quiet)
    err_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True, no_color=not color)
    _verbose = verbose and not quiet


def info(msg: str):
    console.print(f'[blue]{escape(msg)}[/blue]')


def plain(msg: str = ''):
    console.print(escape(msg))


def success(msg: str):
    console.print(f'[green]✓ {escape(msg)}[/green]')


def warning(msg: str):
    console.print(f'[yellow]! {escape(msg)}[/yellow]')


def error(msg: str):
    err_console.print(f'[red]✗ {escape(msg)}[/red]')


def dry_run(msg: str):
    console.print(f'[cyan]{escape(msg)}[/cyan]')


def verbose(msg: str):
    if _verbose:
        err_console.print(f'[dim]{escape(msg)}[/dim]')


def added(name: str, detail: str = ''):
    console.print(f'[green]+ {escape(name):<30}[/green] {escape(detail)}'.rstrip())


def removed(name: str, detail: str = ''):
    console.print(f'[red]- {escape(name):<30}[/red] {escape(detail)}'.rstrip())


def header(msg: str):
    console.print(f'\n[bold]{escape(msg)}[/bold]')


def hint(msg: str):
    err_console.print(f'  [dim]Hint: {escape(msg)}[/dim]')
