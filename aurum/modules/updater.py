# aurum/modules/updater.py
"""
updater.py - decide se um pacote em cache está desatualizado e o reconstrói.

 - versão em cache: extraída do nome do artefato ("unknown" se ausente)
 - versão remota: AUR info
 - remota > cache (compare_versions): rebuild forçado, remove o pacote
   antigo e instala os novos artefatos num único lote
"""

from __future__ import annotations
import os
import shutil
from typing import List, Optional

from aurum.modules import logger as _logger
from aurum.modules.cache import ArtifactCache, version_from_filename
from aurum.modules.errors import InstallError
from aurum.modules.resolver import ResolutionResult
from aurum.modules.version import UNKNOWN_VERSION, compare_versions
from aurum.modules.workdir import BuildWorkspace, is_empty

NOT_INSTALLED = "not-installed"
UP_TO_DATE = "up-to-date"
UPDATED = "updated"


class UpdateDecision:
    def __init__(self, name: str, cached_version: str, remote_version: str):
        self.name = name
        self.cached_version = cached_version
        self.remote_version = remote_version
        self.status: Optional[str] = None
        self.artifacts: List[str] = []

    @property
    def needs_update(self) -> bool:
        return compare_versions(self.remote_version, self.cached_version) > 0

    def __repr__(self):
        return f"UpdateDecision({self.name!r}, {self.cached_version!r} -> {self.remote_version!r})"


class UpdateEvaluator:
    def __init__(self, cache: ArtifactCache, metadata, orchestrator, batcher, installer, database,
                 build_root: Optional[str] = None, keep_build_dir: bool = False,
                 logger: Optional[_logger.Logger] = None):
        self.cache = cache
        self.metadata = metadata
        self.orchestrator = orchestrator
        self.batcher = batcher
        self.installer = installer
        self.database = database
        self.build_root = build_root
        self.keep_build_dir = keep_build_dir
        self.log = logger or _logger.Logger("update")

    def cached_version(self, name: str) -> str:
        path = self.cache.find(name)
        if path is None:
            return UNKNOWN_VERSION
        version = version_from_filename(os.path.basename(path), name)
        if version is None:
            self.log.warning(f"Failed to extract version from cached filename {os.path.basename(path)}")
            return UNKNOWN_VERSION
        return version

    def evaluate(self, name: str) -> UpdateDecision:
        remote = self.metadata.get_info(name)
        decision = UpdateDecision(name, self.cached_version(name), remote.version)
        self.log.info(f"Version comparison: {decision.cached_version} (cached) vs "
                      f"{decision.remote_version} (latest)")
        return decision

    def update(self, name: str) -> UpdateDecision:
        decision = self.evaluate(name)
        if not self.database.is_installed(name):
            self.log.warning(f"Package not installed: {name}")
            decision.status = NOT_INSTALLED
            return decision
        if not decision.needs_update:
            self.log.info(f"Package {name} is already up to date.")
            decision.status = UP_TO_DATE
            return decision

        self.log.info(f"Updating package: {name} (from {decision.cached_version} "
                      f"to {decision.remote_version})")
        with BuildWorkspace(name, root=self.build_root, keep=self.keep_build_dir,
                            logger=self.log) as ws:
            if not is_empty(ws.path):
                # a fonte antiga geraria a versão antiga
                self.log.info(f"Discarding stale source in {ws.path}")
                shutil.rmtree(ws.path)
            artifacts = self.orchestrator.build(name, ws.path, force=True)

        res = self.installer.remove([name])
        if not res.ok():
            raise InstallError(f"Failed to remove old package (exit {res.returncode})",
                               package=name, stage="removal")
        self.batcher.install_artifacts(ResolutionResult(artifact_batch=artifacts))

        decision.artifacts = artifacts
        decision.status = UPDATED
        self.log.success("Update completed successfully!")
        return decision
