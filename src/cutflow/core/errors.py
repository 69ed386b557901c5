"""
CutFlow: Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do CutFlow.
Falhas de montagem ou execução de um schedule são tratadas como artefatos
rastreáveis e devem ser:

- explícitas
- serializáveis
- acionáveis

Nenhum redirect inválido é ignorado silenciosamente.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CutflowErrorPayload:
    """
    Payload canônico de erro do CutFlow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Schedule / Montagem
SCHEDULE_UNRESOLVED_TARGET = "SCHEDULE_UNRESOLVED_TARGET"

# Engine / Execução
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"
ENGINE_CONFIGURATION_ERROR = "ENGINE_CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def unresolved_jump_target(
    *,
    task_type: str,
    task_name: Optional[str],
    target: str,
    hint: str = "Registre uma Task sob o nome alvo na estratégia ou corrija o alvo do redirect.",
) -> CutflowErrorPayload:
    return CutflowErrorPayload(
        type=SCHEDULE_UNRESOLVED_TARGET,
        message=f"{task_type} redirects to unregistered task name '{target}'",
        details={
            "task_type": task_type,
            "task_name": task_name,
            "target": target,
        },
        hint=hint,
    )


def engine_execution_error(
    *,
    task: Optional[str] = None,
    task_type: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o Event Log do contexto e o Manifest da run. Nenhum retry é aplicado automaticamente.",
) -> CutflowErrorPayload:
    return CutflowErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a execução de uma Task",
        details={
            "task": task,
            "task_type": task_type,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )


def engine_configuration_error(
    *,
    message: str = "Configuração inválida para execução do schedule",
    details: Optional[Dict[str, Any]] = None,
    hint: str = "Revise a montagem da estratégia e os settings antes de reexecutar.",
) -> CutflowErrorPayload:
    return CutflowErrorPayload(
        type=ENGINE_CONFIGURATION_ERROR,
        message=message,
        details=details or {},
        hint=hint,
    )
