"""
CutFlow: Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do CutFlow.

Objetivo:
- Permitir que Engine e Tasks levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para CutflowErrorPayload
- Evitar RuntimeError genérico em falhas fatais de schedule

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Redirects nunca são comunicados por exceção.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True, eq=False)
class CutflowException(Exception):
    """Base class para exceções internas do CutFlow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Schedule / Montagem
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class UnresolvedJumpTargetError(CutflowException):
    """Uma Task pediu redirect para um nome que não está registrado."""


# ---------------------------------------------------------------------------
# Engine / Configuração
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class EngineConfigurationError(CutflowException):
    """Configuração inválida ou inconsistente para execução."""


@dataclass(frozen=True, eq=False)
class TaskExecutionError(CutflowException):
    """Exceção inesperada escapou de `Task.run` (encapsulada)."""
