# aurum/modules/errors.py
"""
errors.py - exceções compartilhadas por todos os componentes.

Cada erro leva o pacote envolvido e a etapa em que ocorreu, e a CLI
imprime "<etapa> failed for <pacote>: <motivo>".
"""

from typing import Optional


class AurumError(Exception):
    default_stage: Optional[str] = None

    def __init__(self, message: str, package: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.package = package
        self.stage = stage or self.default_stage

    def __str__(self) -> str:
        if self.package and self.stage:
            return f"{self.stage} failed for {self.package}: {self.message}"
        if self.stage:
            return f"{self.stage} failed: {self.message}"
        return self.message


class ExtractionError(AurumError):
    default_stage = "dependency extraction"


class ClassificationError(AurumError):
    default_stage = "dependency check"


class BuildError(AurumError):
    default_stage = "build"


class CacheError(AurumError):
    default_stage = "caching"


class InstallError(AurumError):
    default_stage = "installation"


class OracleError(AurumError):
    default_stage = "package database query"


class MetadataError(AurumError):
    default_stage = "AUR request"


class PackageNotFound(MetadataError):
    default_stage = "AUR lookup"
