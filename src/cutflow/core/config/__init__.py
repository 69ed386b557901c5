# src/cutflow/core/config/__init__.py
"""
Camada de settings do CutFlow.

Este pacote carrega, mescla e identifica os settings que parametrizam
as Tasks de uma run (tolerâncias de gap, limites de iteração e tempo,
estratégia de limite de soluções, flags do engine).

Responsabilidades do pacote:
    - Defaults canônicos embutidos (`DEFAULT_SETTINGS`)
    - Carregamento de arquivos YAML/JSON com override local opcional
    - Deep-merge determinístico
    - Hash canônico para o Manifest

Invariantes:
    - Settings resolvidos são sempre um dicionário puro
    - Conflitos de tipo durante o merge são erro fatal

Limites explícitos:
    - Não interpreta semântica dos valores (isso cabe às Tasks)
    - Não interage com Engine ou Scheduler
"""

from .defaults import DEFAULT_SETTINGS, resolve_settings
from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import load_config
from .merge import deep_merge

__all__ = [
    "DEFAULT_SETTINGS",
    "resolve_settings",
    "load_config",
    "deep_merge",
    "compute_config_hash",
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
]
