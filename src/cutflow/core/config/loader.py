# src/cutflow/core/config/loader.py
"""
Loader de settings do CutFlow.

Os settings efetivos de uma run são resolvidos em camadas:
    1. `DEFAULT_SETTINGS` embutidos
    2. um arquivo base (opcional; obrigatório existir quando informado)
    3. um arquivo local de overrides (opcional; ignorado se ausente)

Cada camada é aplicada com `deep_merge`, de forma que a camada seguinte
tem precedência.

Formatos suportados (v1):
    - YAML (.yaml, .yml) via PyYAML `safe_load`
    - JSON (.json)

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Arquivos vazios equivalem a um dicionário vazio
    - Nenhuma camada é mutada pelo merge

Limites explícitos:
    - Não valida semântica dos valores
    - Não persiste settings nem hash
"""

from pathlib import Path
from typing import Any, Dict, Optional
import json

import yaml  # PyYAML

from .defaults import DEFAULT_SETTINGS
from .merge import deep_merge
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Lê um arquivo de settings e valida o tipo raiz.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dict.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de settings não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: Optional[str] = None,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Resolve os settings efetivos de uma run.

    Args:
        defaults_path (Optional[str]): Arquivo base do projeto. Quando
            informado, precisa existir.
        local_path (Optional[str]): Overrides locais; ignorado se o arquivo
            não existir.

    Returns:
        Dict[str, Any]: Settings resolvidos sobre `DEFAULT_SETTINGS`.

    Raises:
        DefaultsNotFoundError: Se `defaults_path` não existir.
        UnsupportedConfigFormatError: Se o formato não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito de tipo durante o merge.
    """
    effective = deep_merge(DEFAULT_SETTINGS, {})

    if defaults_path is not None:
        effective = deep_merge(effective, _load_file(Path(defaults_path)))

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, _load_file(local_file))

    return effective
