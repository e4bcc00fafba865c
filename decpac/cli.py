import os
from dataclasses import dataclass
from pathlib import Path

import typer

from decpac import __version__, output
from decpac.config import Settings, load_settings
from decpac.constants import SETTINGS_FILE
from decpac.errors import DecpacError, UserCancelledError
from decpac.manifest import Manifest, Source, load_manifest
from decpac.output import added, dry_run, error, info, plain, removed, success, warning
from decpac.packages import PackageTools, get_hostname
from decpac.plan import DesiredSet, PackagePlan, plan_for, select_packages
from decpac.state import is_initialized, mark_initialized

app = typer.Typer(
    name='decpac',
    help='Declarative package manager for Arch Linux',
    invoke_without_command=True,
    context_settings={
        'help_option_names': ['--help', '-h'],
    },
)


@dataclass
class RunContext:
    settings: Settings
    dry_run: bool = False
    verbose: bool = False
    quiet: bool = False

    def tools(self) -> PackageTools:
        return PackageTools(pacman=self.settings.pacman, aur_helper=self.settings.aur_helper)


@dataclass
class SyncOptions:
    no_confirm: bool = False
    only_install: bool = False
    only_remove: bool = False


def fail(e: DecpacError):
    """Report an error and exit with its code."""
    error(f'Error: {e}')
    if e.hint:
        output.hint(e.hint)
    raise typer.Exit(e.exit_code)


def version_callback(value: bool):
    if value:
        typer.echo(f'decpac {__version__}')
        raise typer.Exit()


@dataclass
class GlobalOptions:
    """Options accepted both before and after the subcommand."""

    config: Path | None = None
    dry_run: bool = False
    verbose: bool = False
    quiet: bool = False

    def merge(self, config: Path | None, dry_run: bool, verbose: bool, quiet: bool) -> 'GlobalOptions':
        return GlobalOptions(
            config=config or self.config,
            dry_run=dry_run or self.dry_run,
            verbose=verbose or self.verbose,
            quiet=quiet or self.quiet,
        )


def start(
    ctx: typer.Context,
    config: Path | None = None,
    dry_run_: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> RunContext:
    """Merge subcommand options into the global ones and load settings."""
    opts = (ctx.obj or GlobalOptions()).merge(config, dry_run_, verbose, quiet)
    try:
        settings = load_settings(SETTINGS_FILE, os.environ, opts.config)
    except DecpacError as e:
        output.configure(color='NO_COLOR' not in os.environ)
        fail(e)

    output.configure(color=settings.color, verbose=opts.verbose, quiet=opts.quiet)
    return RunContext(settings=settings, dry_run=opts.dry_run, verbose=opts.verbose, quiet=opts.quiet)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, '--config', '-c', help='Path to manifest file'),
    dry_run_: bool = typer.Option(False, '--dry-run', '-n', help='Show what would be done without executing'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Enable verbose output'),
    quiet: bool = typer.Option(False, '--quiet', '-q', help='Suppress non-error output'),
    version: bool = typer.Option(
        False, '--version', callback=version_callback, is_eager=True, help='Show version'
    ),
):
    """Declarative package manager for Arch Linux. Runs sync by default."""
    ctx.obj = GlobalOptions(config=config, dry_run=dry_run_, verbose=verbose, quiet=quiet)

    if ctx.invoked_subcommand is None:
        run_or_exit(run_sync, start(ctx), SyncOptions())


def run_or_exit(func, *args):
    try:
        func(*args)
    except DecpacError as e:
        fail(e)


def load_desired(run: RunContext) -> tuple[Manifest, str, DesiredSet]:
    """Parse the manifest and select packages for this host."""
    manifest = load_manifest(run.settings.manifest)
    host = get_hostname()
    return manifest, host, select_packages(manifest, host)


def print_plan(run: RunContext, host: str, plan: PackagePlan):
    """Print a dry-run preview of the plan."""
    dry_run(f'Configuration: {run.settings.manifest}')
    dry_run(f'Hostname: {host}')
    plain()

    for title, packages in [
        ('Would install (official):', plan.install_repo),
        ('Would install (AUR):', plan.install_aur),
        ('Would remove (orphans):', plan.remove),
    ]:
        if packages:
            dry_run(title)
            for pkg in packages:
                plain(f'  {pkg}')
            plain()

    if plan.in_sync:
        dry_run('No changes needed')
    else:
        dry_run('No changes made (dry run)')


def confirm_first_run(run: RunContext, ask: bool = True):
    """Suggest a package list backup before the first mutating sync."""
    if is_initialized(run.settings.state_file):
        return
    if not ask:
        mark_initialized(run.settings.state_file)
        return

    warning('First time setup detected')
    plain()
    plain("Before proceeding, it's recommended to back up your currently installed packages:")
    plain()
    plain(f'    {run.settings.pacman} -Qqe > ~/pkglist-backup.txt')
    plain()
    plain('This will allow you to restore your system if needed.')
    if not typer.confirm('Continue?', default=False):
        raise UserCancelledError()

    mark_initialized(run.settings.state_file)


def run_sync(run: RunContext, options: SyncOptions):
    _, host, desired = load_desired(run)
    tools = run.tools()

    output.verbose(f'Configuration: {run.settings.manifest}')
    output.verbose(f'Hostname: {host}')
    output.verbose(f'Desired packages: {len(desired.repo)} official, {len(desired.aur)} AUR')

    if desired.aur:
        tools.require_aur_helper()

    plan = plan_for(desired, tools.explicit_packages(), tools.orphan_packages())

    if run.dry_run:
        print_plan(run, host, plan)
        return

    if plan.in_sync:
        success('System is already in sync with configuration')
        return

    confirm_first_run(run, ask=not options.no_confirm)

    if not options.only_install:
        tools.mark_all_as_deps()
        installed = tools.all_packages()
        tools.mark_explicit([p for p in desired.repo + desired.aur if p in installed])

        if plan.remove:
            warning('The following packages will be removed (orphans):')
            for pkg in plan.remove:
                plain(f'  {pkg}')

            if not options.no_confirm and not typer.confirm('Proceed with removal?', default=False):
                raise UserCancelledError()
            removed_pkgs = tools.remove_orphans()
            success(f'Removed {len(removed_pkgs)} orphaned packages')

    if not options.only_remove:
        if plan.install_repo:
            info(f'Installing {len(plan.install_repo)} official packages...')
            tools.install_repo(list(plan.install_repo))
        if plan.install_aur:
            info(f'Installing {len(plan.install_aur)} AUR packages...')
            tools.install_aur(list(plan.install_aur))

    success('Sync complete')


@app.command()
def sync(
    ctx: typer.Context,
    no_confirm: bool = typer.Option(False, '--no-confirm', help='Skip confirmation prompts'),
    only_install: bool = typer.Option(False, '--only-install', help="Only install missing packages, don't remove orphans"),
    only_remove: bool = typer.Option(False, '--only-remove', help="Only remove orphans, don't install packages"),
    config: Path | None = typer.Option(None, '--config', '-c', help='Path to manifest file'),
    dry_run_: bool = typer.Option(False, '--dry-run', '-n', help='Show what would be done without executing'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Enable verbose output'),
    quiet: bool = typer.Option(False, '--quiet', '-q', help='Suppress non-error output'),
):
    """Synchronize system state with the manifest (default)."""
    if only_install and only_remove:
        error('--only-install and --only-remove are mutually exclusive')
        raise typer.Exit(1)
    run = start(ctx, config, dry_run_, verbose, quiet)
    run_or_exit(run_sync, run, SyncOptions(no_confirm, only_install, only_remove))


def run_status(run: RunContext):
    manifest, host, desired = load_desired(run)
    tools = run.tools()
    installed = tools.explicit_packages()
    plan = plan_for(desired, installed, tools.orphan_packages())

    info(f'Configuration: {run.settings.manifest}')
    info(f'Hostname: {host}')

    common = sum(len(s.entries) for s in manifest.sections if s.scope.is_universal)
    host_specific = sum(
        len(s.entries) for s in manifest.sections if not s.scope.is_universal and s.scope.matches(host)
    )

    output.header('Package Summary:')
    plain(f'  Common packages (## *): {common}')
    plain(f'  Host-specific (## @{host}): {host_specific}')
    plain(f'  Total configured: {desired.total}')
    plain()
    plain(f'  Installed (official): {len(desired.repo) - len(plan.install_repo)}')
    plain(f'  Installed (AUR): {len(desired.aur) - len(plan.install_aur)}')
    plain()

    plain(f'  Missing: {len(plan.to_install)}')
    for pkg in plan.install_repo:
        plain(f'    - {pkg}')
    for pkg in plan.install_aur:
        plain(f'    - aur:{pkg}')

    plain()
    plain(f'  Orphans: {len(plan.remove)}')
    for pkg in plan.remove:
        plain(f'    - {pkg}')

    output.header('Sections in config:')
    for section in manifest.sections:
        count = len(section.entries)
        suffix = '' if section.scope.matches(host) else ' - not current host'
        aur = sum(1 for e in section.entries if e.source is Source.AUR)
        if aur:
            detail = f'{count} packages, {count - aur} official + {aur} AUR{suffix}'
        else:
            detail = f'{count} packages{suffix}'
        plain(f'  {section.scope} ({detail})')


@app.command()
def status(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, '--config', '-c', help='Path to manifest file'),
    dry_run_: bool = typer.Option(False, '--dry-run', '-n', help='Show what would be done without executing'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Enable verbose output'),
    quiet: bool = typer.Option(False, '--quiet', '-q', help='Suppress non-error output'),
):
    """Display current synchronization status."""
    run_or_exit(run_status, start(ctx, config, dry_run_, verbose, quiet))


def run_diff(run: RunContext):
    _, _, desired = load_desired(run)
    tools = run.tools()
    plan = plan_for(desired, tools.explicit_packages(), tools.orphan_packages())

    for pkg in plan.install_repo:
        added(pkg, '// not installed')
    for pkg in plan.install_aur:
        added(f'aur:{pkg}', '// not installed (AUR)')
    for pkg in plan.remove:
        removed(pkg, '// not in config, would be removed')

    if plan.in_sync:
        success('System is in sync with configuration')


@app.command()
def diff(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, '--config', '-c', help='Path to manifest file'),
    dry_run_: bool = typer.Option(False, '--dry-run', '-n', help='Show what would be done without executing'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Enable verbose output'),
    quiet: bool = typer.Option(False, '--quiet', '-q', help='Suppress non-error output'),
):
    """Show differences between the manifest and system state."""
    run_or_exit(run_diff, start(ctx, config, dry_run_, verbose, quiet))


def run_validate(run: RunContext):
    manifest = load_manifest(run.settings.manifest)
    success(f'Configuration is valid: {run.settings.manifest}')
    plain(f'  {len(manifest.sections)} sections, {manifest.entry_count} total package entries')


@app.command()
def validate(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, '--config', '-c', help='Path to manifest file'),
    dry_run_: bool = typer.Option(False, '--dry-run', '-n', help='Show what would be done without executing'),
    verbose: bool = typer.Option(False, '--verbose', '-v', help='Enable verbose output'),
    quiet: bool = typer.Option(False, '--quiet', '-q', help='Suppress non-error output'),
):
    """Validate manifest syntax."""
    run_or_exit(run_validate, start(ctx, config, dry_run_, verbose, quiet))


def main():
    app()


if __name__ == '__main__':
    main()
