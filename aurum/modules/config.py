import configparser
import os

DEFAULT_LOCATIONS = [
    "/etc/aurum/aurum.conf",
    os.path.expanduser("~/.config/aurum/aurum.conf"),
]

USER_CONFIG = os.path.expanduser("~/.config/aurum/aurum.conf")

ENV_PREFIX = "AURUM"

DEFAULTS = {
    "aur": {
        "base_url": "https://aur.archlinux.org",
        "timeout": "10",
    },
    "paths": {
        "cache_dir": "~/.cache/aurum/packages",
        "build_dir": "~/.cache/aurum/build",
    },
    "build": {
        "git": "git",
        "makepkg": "makepkg",
        "makepkg_args": "--syncdeps",
        "transitive": "false",
        "keep_build_dir": "false",
    },
    "pacman": {
        "pacman": "pacman",
        "sudo": "sudo",
    },
    "logging": {
        "level": "info",
        "log_file": "~/.cache/aurum/aurum.log",
        "log_to_file": "true",
        "log_to_console": "true",
        "color_output": "true",
        "log_format": "text",
        "timestamp_utc": "false",
        "max_log_size_kb": "1024",
    },
}

DEFAULT_CONFIG_CONTENT = """\
# aurum.conf - gerado automaticamente na primeira execução

[aur]
# URL base da interface RPC do AUR
base_url = https://aur.archlinux.org
timeout = 10

[paths]
cache_dir = ~/.cache/aurum/packages
build_dir = ~/.cache/aurum/build

[build]
makepkg_args = --syncdeps
# resolve também as dependências das dependências (padrão: um nível)
transitive = false
keep_build_dir = false

[logging]
level = info
"""


class AurumConfig:
    def __init__(self, locations=None):
        env_path = os.environ.get(f"{ENV_PREFIX}_CONFIG")
        if locations is None:
            locations = ([env_path] if env_path else []) + DEFAULT_LOCATIONS
        self.locations = locations
        self.config = configparser.ConfigParser()
        self.loaded_from = None
        self.reload()

    def reload(self):
        """(Re)carrega defaults e depois o primeiro arquivo disponível."""
        self.config = configparser.ConfigParser()
        self.config.read_dict(DEFAULTS)
        self.loaded_from = None
        for path in self.locations:
            if os.path.isfile(path):
                self.config.read(path)
                self.loaded_from = path
                return

    def set(self, section, option, value):
        """Sobrescreve um valor em memória (usado pelas flags da CLI)."""
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, option, str(value))

    def _env_override(self, section, option):
        return os.environ.get(f"{ENV_PREFIX}_{section}_{option}".upper())

    def get(self, section, option, fallback=None):
        env = self._env_override(section, option)
        if env is not None:
            return env
        try:
            return self.config.get(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return fallback

    def getboolean(self, section, option, fallback=False):
        raw = self.get(section, option)
        if raw is None:
            return fallback
        value = str(raw).strip().lower()
        if value in configparser.ConfigParser.BOOLEAN_STATES:
            return configparser.ConfigParser.BOOLEAN_STATES[value]
        return fallback

    def getint(self, section, option, fallback=0):
        try:
            return int(self.get(section, option, fallback=fallback))
        except (TypeError, ValueError):
            return fallback

    def getfloat(self, section, option, fallback=0.0):
        try:
            return float(self.get(section, option, fallback=fallback))
        except (TypeError, ValueError):
            return fallback

    def getpath(self, section, option, fallback=None):
        raw = self.get(section, option, fallback=fallback)
        if not raw:
            return fallback
        return os.path.abspath(os.path.expanduser(raw))

    # ------------------------
    # Diretórios de trabalho
    # ------------------------
    def cache_path(self):
        """Diretório do cache de artefatos; criado se não existir."""
        path = self.getpath("paths", "cache_dir")
        os.makedirs(path, exist_ok=True)
        return path

    def build_path(self):
        """Raiz persistente dos builds de pacotes pedidos pelo usuário."""
        path = self.getpath("paths", "build_dir")
        os.makedirs(path, exist_ok=True)
        return path

    def ensure_user_config(self, path=USER_CONFIG):
        """Cria o arquivo de configuração do usuário com valores padrão."""
        if os.path.exists(path):
            return path
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(DEFAULT_CONFIG_CONTENT)
        return path

    def __getitem__(self, section):
        if section in self.config:
            return dict(self.config[section])
        raise KeyError(f"Seção '{section}' não encontrada.")

    def __contains__(self, section):
        return section in self.config

# Instância global padrão para uso em outros módulos
config = AurumConfig()
