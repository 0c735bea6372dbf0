# aurum/modules/runner.py
import os
import subprocess
import shlex
import time
from datetime import datetime

from aurum.modules import logger


class CommandResult:
    """Resultado de um comando externo: Success ou Failure(returncode, saída)."""

    def __init__(self, command, returncode, stdout, stderr, duration):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        self.duration = duration
        self.timestamp = datetime.now().isoformat()

    def ok(self):
        return self.returncode == 0

    def output(self):
        """Saída capturada (stderr primeiro) para mensagens de erro."""
        parts = [p.strip() for p in (self.stderr, self.stdout) if p and p.strip()]
        return "\n".join(parts)

    def to_dict(self):
        return {
            "command": self.command,
            "returncode": self.returncode,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "duration": self.duration,
            "timestamp": self.timestamp,
        }

    def __repr__(self):
        return f"CommandResult({' '.join(self.command)!r}, returncode={self.returncode})"


class CommandRunner:
    """
    Executor de processos filhos com escopo.
    Recursos:
      - saída capturada é drenada por completo antes de olhar o status
      - modo interativo (herda o terminal) para sudo/pacman
      - executável ausente vira resultado com código 127, sem permissão 126
      - histórico em memória dos comandos executados
    """

    MISSING_EXECUTABLE = 127
    NOT_EXECUTABLE = 126

    def __init__(self):
        self.log = logger.Logger("runner")
        self.history = []

    def run(self, command, cwd=None, env=None, capture=True):
        """Executa um comando (bloqueante) e devolve um CommandResult."""
        if isinstance(command, str):
            command = shlex.split(command)
        command = list(command)

        self.log.debug(f"Executando: {' '.join(command)} (cwd={cwd})")

        start = time.time()
        try:
            if capture:
                proc = subprocess.Popen(
                    command,
                    cwd=cwd,
                    env=env or os.environ.copy(),
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                )
                stdout, stderr = proc.communicate()
            else:
                proc = subprocess.Popen(command, cwd=cwd, env=env or os.environ.copy())
                proc.wait()
                stdout, stderr = "", ""
            returncode = proc.returncode
        except FileNotFoundError as e:
            self.log.error(f"Executável não encontrado: {command[0]}")
            returncode, stdout, stderr = self.MISSING_EXECUTABLE, "", str(e)
        except OSError as e:
            self.log.error(f"Falha ao executar {command[0]}: {e}")
            returncode, stdout, stderr = self.NOT_EXECUTABLE, "", str(e)

        result = CommandResult(command, returncode, stdout, stderr, time.time() - start)
        self.history.append(result.to_dict())
        if not result.ok():
            self.log.debug(f"{' '.join(command)} terminou com código {returncode}")
        return result

    def stats(self):
        """Retorna estatísticas simples dos comandos executados"""
        total = len(self.history)
        success = sum(1 for h in self.history if h["returncode"] == 0)
        avg_time = sum(h["duration"] for h in self.history) / total if total else 0
        return {"total": total, "success": success, "fail": total - success, "avg_time": avg_time}
