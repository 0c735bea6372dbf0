# aurum/modules/resolver.py

from __future__ import annotations
import enum
import os
from typing import Dict, Iterable, List, Optional, Tuple

from aurum.modules import logger as _logger
from aurum.modules.cache import ArtifactCache
from aurum.modules.errors import ClassificationError, MetadataError, OracleError, PackageNotFound


class Tier(enum.Enum):
    INSTALLED = "installed"
    TRUSTED_REPO = "trusted-repo"
    CACHED = "cached"
    NEEDS_BUILD = "needs-build"


class Classification:
    """Quatro grupos disjuntos; cada um mantém a ordem de entrada."""

    def __init__(self):
        self.installed: List[str] = []
        self.trusted_repo: List[str] = []
        self.cached: List[str] = []
        self.needs_build: List[str] = []
        self.cached_paths: Dict[str, str] = {}
        self._tiers: Dict[str, Tier] = {}

    def add(self, name: str, tier: Tier, artifact_path: Optional[str] = None):
        if name in self._tiers:
            return
        self._tiers[name] = tier
        self.bucket(tier).append(name)
        if tier is Tier.CACHED:
            self.cached_paths[name] = artifact_path

    def bucket(self, tier: Tier) -> List[str]:
        return {
            Tier.INSTALLED: self.installed,
            Tier.TRUSTED_REPO: self.trusted_repo,
            Tier.CACHED: self.cached,
            Tier.NEEDS_BUILD: self.needs_build,
        }[tier]

    def tier_of(self, name: str) -> Optional[Tier]:
        return self._tiers.get(name)

    def artifact_paths(self) -> List[str]:
        return [self.cached_paths[n] for n in self.cached]


class ResolutionResult:
    """Saída de uma classificação, consumida uma única vez pelo InstallBatcher."""

    def __init__(self, trusted_repo_batch: Iterable[str] = (), artifact_batch: Iterable[str] = ()):
        self.trusted_repo_batch: List[str] = []
        self.artifact_batch: List[str] = []
        self._artifact_packages: Dict[str, str] = {}
        self.trusted_installed = False
        self.artifacts_installed = False
        for name in trusted_repo_batch:
            self.add_trusted(name)
        for path in artifact_batch:
            self.add_artifact(path)

    def add_trusted(self, name: str):
        if name in self._artifact_packages.values():
            raise ValueError(f"{name} is already in the artifact batch")
        if name not in self.trusted_repo_batch:
            self.trusted_repo_batch.append(name)

    def add_artifact(self, path: str, package: Optional[str] = None):
        if package and package in self.trusted_repo_batch:
            raise ValueError(f"{package} is already in the trusted-repo batch")
        if path not in self.artifact_batch:
            self.artifact_batch.append(path)
            self._artifact_packages[path] = package or os.path.basename(path)

    def is_empty(self) -> bool:
        return not self.trusted_repo_batch and not self.artifact_batch


class DependencyClassifier:
    def __init__(self, database, cache: ArtifactCache, metadata=None,
                 logger: Optional[_logger.Logger] = None):
        self.database = database
        self.cache = cache
        self.metadata = metadata
        self.log = logger or _logger.Logger("resolver")

    def classify_one(self, name: str) -> Tuple[Tier, Optional[str]]:
        """Camada de um nome (vence a primeira que casar) e o caminho em cache, se houver."""
        try:
            if self.database.is_installed(name):
                return Tier.INSTALLED, None
            if self.database.is_available(name):
                return Tier.TRUSTED_REPO, None
        except OracleError as e:
            raise ClassificationError(f"Failed to check dependency {name}: {e.message}", package=name)
        cached = self.cache.find(name)
        if cached:
            return Tier.CACHED, cached
        return Tier.NEEDS_BUILD, None

    def _confirm_in_aur(self, name: str):
        try:
            self.metadata.get_info(name)
        except PackageNotFound:
            raise ClassificationError(
                f"Dependency {name} not found in official repos, cache, or AUR",
                package=name, stage="dependency resolution")
        except MetadataError as e:
            raise ClassificationError(f"Failed to check AUR for dependency {name}: {e.message}",
                                      package=name, stage="dependency resolution")

    def classify(self, names: Iterable[str]) -> Classification:
        result = Classification()
        self.log.info("Categorizing dependencies...")
        for name in names:
            if result.tier_of(name) is not None:
                continue
            tier, cached = self.classify_one(name)
            if tier is Tier.NEEDS_BUILD and self.metadata is not None:
                self._confirm_in_aur(name)
            result.add(name, tier, cached)
            self.log.debug(f"{name}: {tier.value}")
        return result
