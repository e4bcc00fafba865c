"""
Tests for pacman and AUR helper invocations.
"""

import subprocess

import pytest

from decpac import packages
from decpac.errors import (
    HostnameError,
    InstallError,
    PermissionDeniedError,
    PrerequisiteMissingError,
)
from decpac.packages import PackageTools, get_hostname


class FakeRun:
    """Records subprocess.run calls and answers from a table keyed by args."""

    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        returncode, stdout, stderr = self.responses.get(tuple(args[:3]), (0, '', ''))
        return subprocess.CompletedProcess(args, returncode, stdout, stderr)


@pytest.fixture
def fake_run(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr(packages.subprocess, 'run', fake)
    return fake


class TestQueries:
    """Test package queries."""

    def test_explicit_packages(self, fake_run):
        fake_run.responses[('pacman', '-Qqe')] = (0, 'base\ngit\n\n', '')
        assert PackageTools().explicit_packages() == {'base', 'git'}
        assert fake_run.calls == [['pacman', '-Qqe']]

    def test_custom_pacman_binary(self, fake_run):
        PackageTools(pacman='/opt/pacman').all_packages()
        assert fake_run.calls == [['/opt/pacman', '-Qq']]

    def test_query_failure(self, fake_run):
        fake_run.responses[('pacman', '-Qqe')] = (1, '', 'database locked')
        with pytest.raises(InstallError, match='database locked'):
            PackageTools().explicit_packages()

    def test_missing_binary(self, monkeypatch):
        def boom(*args, **kwargs):
            raise FileNotFoundError('pacman')

        monkeypatch.setattr(packages.subprocess, 'run', boom)
        with pytest.raises(InstallError, match='Failed to run pacman'):
            PackageTools().explicit_packages()

    def test_orphans_keep_order(self, fake_run):
        fake_run.responses[('pacman', '-Qqdt')] = (0, 'zlib-old\nabc\n', '')
        assert PackageTools().orphan_packages() == ['zlib-old', 'abc']

    def test_no_orphans_exit_code(self, fake_run):
        fake_run.responses[('pacman', '-Qqdt')] = (1, '', '')
        assert PackageTools().orphan_packages() == []

    def test_orphan_query_failure(self, fake_run):
        fake_run.responses[('pacman', '-Qqdt')] = (2, '', 'error: bad')
        with pytest.raises(InstallError):
            PackageTools().orphan_packages()


class TestMutations:
    """Test install, mark and remove commands."""

    def test_install_repo(self, fake_run):
        PackageTools().install_repo(['base', 'git'])
        assert fake_run.calls == [['sudo', 'pacman', '-S', '--needed', '--noconfirm', 'base', 'git']]

    def test_install_aur_runs_without_sudo(self, fake_run):
        PackageTools(aur_helper='paru').install_aur(['yay-bin'])
        assert fake_run.calls == [['paru', '-S', '--needed', '--noconfirm', 'yay-bin']]

    def test_empty_lists_are_noops(self, fake_run):
        tools = PackageTools()
        tools.install_repo([])
        tools.install_aur([])
        tools.mark_explicit([])
        assert fake_run.calls == []

    def test_install_failure(self, fake_run):
        fake_run.responses[('sudo', 'pacman', '-S')] = (1, '', 'target not found: nope\n')
        with pytest.raises(InstallError) as exc_info:
            PackageTools().install_repo(['nope'])
        assert exc_info.value.exit_code == 3
        assert 'target not found: nope' in str(exc_info.value)

    def test_mark_explicit(self, fake_run):
        PackageTools().mark_explicit(['base'])
        assert fake_run.calls == [['sudo', 'pacman', '-D', '--asexplicit', 'base']]

    def test_mark_failure(self, fake_run):
        fake_run.responses[('sudo', 'pacman', '-D')] = (1, '', 'you cannot perform this operation')
        with pytest.raises(PermissionDeniedError) as exc_info:
            PackageTools().mark_explicit(['base'])
        assert exc_info.value.exit_code == 2

    def test_mark_all_as_deps(self, fake_run):
        fake_run.responses[('pacman', '-Qqe')] = (0, 'git\nbase\n', '')
        PackageTools().mark_all_as_deps()
        assert fake_run.calls[-1] == ['sudo', 'pacman', '-D', '--asdeps', 'base', 'git']

    def test_mark_all_as_deps_nothing_explicit(self, fake_run):
        PackageTools().mark_all_as_deps()
        assert fake_run.calls == [['pacman', '-Qqe']]

    def test_remove_orphans(self, fake_run):
        fake_run.responses[('pacman', '-Qqdt')] = (0, 'old-lib\n', '')
        assert PackageTools().remove_orphans() == ['old-lib']
        assert fake_run.calls[-1] == ['sudo', 'pacman', '-Rns', '--noconfirm', 'old-lib']

    def test_remove_without_orphans(self, fake_run):
        fake_run.responses[('pacman', '-Qqdt')] = (1, '', '')
        assert PackageTools().remove_orphans() == []
        assert len(fake_run.calls) == 1


class TestPrerequisites:
    """Test AUR helper detection and hostname lookup."""

    def test_missing_helper(self, monkeypatch):
        monkeypatch.setattr(packages.shutil, 'which', lambda name: None)
        with pytest.raises(PrerequisiteMissingError) as exc_info:
            PackageTools(aur_helper='paru').require_aur_helper()
        assert exc_info.value.exit_code == 4
        assert 'paru' in str(exc_info.value)

    def test_present_helper(self, monkeypatch):
        monkeypatch.setattr(packages.shutil, 'which', lambda name: f'/usr/bin/{name}')
        PackageTools().require_aur_helper()

    def test_hostname(self, monkeypatch):
        monkeypatch.setattr(packages.socket, 'gethostname', lambda: 'box')
        assert get_hostname() == 'box'

    def test_hostname_failure(self, monkeypatch):
        def boom():
            raise OSError('no name')

        monkeypatch.setattr(packages.socket, 'gethostname', boom)
        with pytest.raises(HostnameError):
            get_hostname()
