# aurum/modules/workdir.py
import os
import shutil
import tempfile
from typing import Optional

from aurum.modules import logger as _logger


def is_empty(path: str) -> bool:
    """Diretório ausente ou vazio."""
    if not os.path.isdir(path):
        return True
    return not os.listdir(path)


class BuildWorkspace:
    """
    Diretório de build de um pacote.

    Sem `root`: diretório temporário descartável, removido em qualquer saída
    (inclusive exceções).
    Com `root`: usa <root>/<name>; removido no sucesso (a menos que keep=True)
    e mantido após uma falha, para que o comando possa ser repetido a partir
    do fonte já baixado.
    """

    def __init__(self, name: str, root: Optional[str] = None, keep: bool = False,
                 logger: Optional[_logger.Logger] = None):
        self.name = name
        self.root = os.path.abspath(root) if root else None
        self.keep = keep
        self.path: Optional[str] = None
        self._tmp: Optional[str] = None
        self.log = logger or _logger.Logger("workdir")

    @property
    def disposable(self) -> bool:
        return self.root is None

    def __enter__(self) -> "BuildWorkspace":
        if self.disposable:
            self._tmp = tempfile.mkdtemp(prefix=f"aurum-{self.name}-")
            # o clone precisa de um destino inexistente
            self.path = os.path.join(self._tmp, self.name)
        else:
            os.makedirs(self.root, exist_ok=True)
            self.path = os.path.join(self.root, self.name)
            if not is_empty(self.path):
                self.log.info(f"Reusing existing build directory {self.path}")
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.disposable:
            self._remove(self._tmp)
        elif exc_type is None and not self.keep:
            self._remove(self.path)
        elif exc_type is not None:
            self.log.warning(f"Keeping build directory {self.path} after failure")
        return False

    def _remove(self, path: Optional[str]):
        if path and os.path.exists(path):
            self.log.debug(f"Removing build directory {path}")
            shutil.rmtree(path, ignore_errors=True)
