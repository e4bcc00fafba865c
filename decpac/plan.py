from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass

from decpac.manifest import Manifest, Source


@dataclass(frozen=True)
class DesiredSet:
    """Packages the manifest wants on a host, in first-seen order."""

    repo: tuple[str, ...] = ()
    aur: tuple[str, ...] = ()

    @property
    def all(self) -> frozenset[str]:
        return frozenset(self.repo) | frozenset(self.aur)

    @property
    def total(self) -> int:
        return len(self.repo) + len(self.aur)


@dataclass(frozen=True)
class PackagePlan:
    install_repo: tuple[str, ...] = ()
    install_aur: tuple[str, ...] = ()
    remove: tuple[str, ...] = ()

    @property
    def to_install(self) -> tuple[str, ...]:
        return self.install_repo + self.install_aur

    @property
    def in_sync(self) -> bool:
        return not self.install_repo and not self.install_aur and not self.remove


def select_packages(manifest: Manifest, host: str) -> DesiredSet:
    """Collect packages for `host` from universal and matching sections.

    A single seen-set spans both sources, so the first declaration of a
    name wins, including its source.
    """
    seen = set()
    repo = []
    aur = []

    for section in manifest.sections_for(host):
        for entry in section.entries:
            if entry.name in seen:
                continue
            seen.add(entry.name)
            if entry.source is Source.AUR:
                aur.append(entry.name)
            else:
                repo.append(entry.name)

    return DesiredSet(tuple(repo), tuple(aur))


def compute_plan(
    desired_repo: Sequence[str],
    desired_aur: Sequence[str],
    installed: Collection[str],
    orphans: Iterable[str],
) -> PackagePlan:
    """Compute package changes.

    Install lists keep declaration order, removals keep the order of
    `orphans`.
    """
    installed = set(installed)
    desired = set(desired_repo) | set(desired_aur)

    return PackagePlan(
        install_repo=tuple(p for p in desired_repo if p not in installed),
        install_aur=tuple(p for p in desired_aur if p not in installed),
        remove=tuple(p for p in orphans if p not in desired),
    )


def plan_for(desired: DesiredSet, installed: Collection[str], orphans: Iterable[str]) -> PackagePlan:
    """Shorthand for compute_plan() over a DesiredSet."""
    return compute_plan(desired.repo, desired.aur, installed, orphans)
