# src/cutflow/core/config/hashing.py
"""
Hash canônico de settings.

O hash identifica estruturalmente os settings de uma run e é gravado em
`inputs.config_hash` do Manifest. A serialização é JSON canônica (chaves
ordenadas, separadores compactos, UTF-8) e o algoritmo é SHA-256.

Valores não finitos (`inf`) são aceitos, pois limites como
`termination.time_limit` podem ser desligados dessa forma.
"""

import hashlib
import json
from typing import Any, Dict


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera o hash SHA-256 hexadecimal (64 caracteres) dos settings.

    Raises:
        TypeError: Se `config` não for um dicionário ou contiver valores
            não serializáveis em JSON.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    canonical_json = json.dumps(
        config,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )

    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
