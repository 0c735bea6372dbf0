# aurum/modules/batcher.py

from __future__ import annotations
from typing import Optional

from aurum.modules import logger as _logger
from aurum.modules.errors import InstallError
from aurum.modules.resolver import ResolutionResult


class InstallBatcher:
    """
    Transforma um ResolutionResult em no máximo duas chamadas ao instalador:
    primeiro o lote do repositório oficial, depois o lote de artefatos.
    """

    def __init__(self, installer, logger: Optional[_logger.Logger] = None):
        self.installer = installer
        self.log = logger or _logger.Logger("batcher")

    def install_trusted(self, result: ResolutionResult) -> int:
        if result.trusted_installed:
            raise InstallError("Trusted-repo batch was already installed",
                               stage="dependency pre-install")
        result.trusted_installed = True
        if not result.trusted_repo_batch:
            return 0
        res = self.installer.install_from_repo(result.trusted_repo_batch)
        if not res.ok():
            raise InstallError(
                f"Failed to install official packages {', '.join(result.trusted_repo_batch)} "
                f"(exit {res.returncode})",
                stage="dependency pre-install")
        return 1

    def install_artifacts(self, result: ResolutionResult) -> int:
        if result.artifacts_installed:
            raise InstallError("Artifact batch was already installed")
        result.artifacts_installed = True
        if not result.artifact_batch:
            return 0
        res = self.installer.install_from_files(result.artifact_batch)
        if not res.ok():
            raise InstallError(
                f"Failed to install packages {', '.join(result.artifact_batch)} "
                f"(exit {res.returncode})")
        return 1

    def apply(self, result: ResolutionResult) -> int:
        calls = self.install_trusted(result)
        calls += self.install_artifacts(result)
        self.log.debug(f"Installer invoked {calls} time(s)")
        return calls
