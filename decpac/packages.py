import shutil
import socket
import subprocess
from dataclasses import dataclass

from decpac.errors import (
    HostnameError,
    InstallError,
    PermissionDeniedError,
    PrerequisiteMissingError,
)
from decpac.output import verbose


def get_hostname() -> str:
    """Get the name of this machine."""
    try:
        host = socket.gethostname()
    except OSError as e:
        raise HostnameError(f'Failed to get hostname: {e}') from e
    if not host:
        raise HostnameError('Failed to get hostname: empty name')
    return host


def split_lines(output: str) -> list[str]:
    return [line for line in output.splitlines() if line.strip()]


@dataclass
class PackageTools:
    """pacman and AUR helper invocations."""

    pacman: str = 'pacman'
    aur_helper: str = 'yay'

    def _query(self, *args: str) -> subprocess.CompletedProcess:
        try:
            return subprocess.run([self.pacman, *args], capture_output=True, text=True)
        except OSError as e:
            raise InstallError(f'Failed to run {self.pacman}: {e}') from e

    def _checked_query(self, *args: str) -> list[str]:
        result = self._query(*args)
        if result.returncode != 0:
            raise InstallError(f'{self.pacman} {" ".join(args)} failed: {result.stderr.strip()}')
        return split_lines(result.stdout)

    def _sudo_pacman(self, args: list[str]) -> subprocess.CompletedProcess:
        return subprocess.run(['sudo', self.pacman, *args], capture_output=True, text=True)

    def explicit_packages(self) -> set[str]:
        """Get explicitly installed packages."""
        return set(self._checked_query('-Qqe'))

    def all_packages(self) -> set[str]:
        """Get every installed package."""
        return set(self._checked_query('-Qq'))

    def orphan_packages(self) -> list[str]:
        """Get installed dependencies nothing requires anymore."""
        result = self._query('-Qqdt')
        # pacman exits 1 when there are no orphans
        if result.returncode != 0:
            if result.returncode == 1 or not result.stderr.strip():
                return []
            raise InstallError(f'{self.pacman} -Qqdt failed: {result.stderr.strip()}')
        return split_lines(result.stdout)

    def require_aur_helper(self):
        """Fail unless the AUR helper is on PATH."""
        if not shutil.which(self.aur_helper):
            raise PrerequisiteMissingError(self.aur_helper)

    def install_repo(self, packages: list[str]):
        """Install repository packages."""
        if not packages:
            return
        verbose(f'Installing {len(packages)} official packages...')
        try:
            result = self._sudo_pacman(['-S', '--needed', '--noconfirm', *packages])
        except OSError as e:
            raise InstallError(f'Failed to run {self.pacman} -S: {e}') from e
        if result.returncode != 0:
            raise InstallError(result.stderr.strip())

    def install_aur(self, packages: list[str]):
        """Install AUR packages. The helper escalates by itself."""
        if not packages:
            return
        verbose(f'Installing {len(packages)} AUR packages...')
        try:
            result = subprocess.run(
                [self.aur_helper, '-S', '--needed', '--noconfirm', *packages],
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise InstallError(f'Failed to run {self.aur_helper} -S: {e}') from e
        if result.returncode != 0:
            raise InstallError(result.stderr.strip())

    def _mark(self, flag: str, packages: list[str], what: str):
        try:
            result = self._sudo_pacman(['-D', flag, *packages])
        except OSError as e:
            raise PermissionDeniedError(f'Failed to run sudo {self.pacman}: {e}') from e
        if result.returncode != 0:
            raise PermissionDeniedError(f'Failed to mark packages as {what}: {result.stderr.strip()}')

    def mark_explicit(self, packages: list[str]):
        """Mark packages as explicitly installed."""
        if not packages:
            return
        verbose(f'Marking {len(packages)} packages as explicitly installed...')
        self._mark('--asexplicit', packages, 'explicit')

    def mark_all_as_deps(self):
        """Mark every explicitly installed package as a dependency."""
        packages = sorted(self.explicit_packages())
        if not packages:
            return
        verbose(f'Marking {len(packages)} packages as dependencies...')
        self._mark('--asdeps', packages, 'dependencies')

    def remove_orphans(self) -> list[str]:
        """Remove current orphans. Returns what was removed."""
        verbose('Removing orphaned packages...')
        orphans = self.orphan_packages()
        if not orphans:
            return []
        try:
            result = self._sudo_pacman(['-Rns', '--noconfirm', *orphans])
        except OSError as e:
            raise InstallError(f'Failed to remove orphans: {e}') from e
        if result.returncode != 0:
            raise InstallError(result.stderr.strip())
        return orphans
