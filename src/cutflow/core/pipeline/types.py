# src/cutflow/core/pipeline/types.py
"""
Tipos canônicos do pipeline do CutFlow.

Este módulo define as estruturas que padronizam a comunicação entre
Tasks, Scheduler, Engine e camadas de rastreabilidade.

Componentes principais:
    - TaskKind       → classificação semântica de Tasks (diagnóstico apenas)
    - RedirectKind   → variantes do resultado de controle de fluxo
    - Redirect       → valor imutável retornado por `Task.run`
    - SolutionStatus → status de término de um subproblema
    - Iteration      → registro mutável de uma iteração do algoritmo
    - PrimalSolution → solução viável aceita como incumbente
    - Hyperplane     → corte linear pendente para o problema dual

Princípios fundamentais:
    - Redirects são valores, nunca exceções
    - Enums possuem valores textuais estáveis (serializáveis em JSON)
    - Nenhuma lógica de execução vive neste módulo

Limites explícitos:
    - Não executa Tasks
    - Não resolve nomes
    - Não contém a matemática das Tasks
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np


class TaskKind(str, Enum):
    """
    Tipos semânticos de Tasks no schedule.

    Tipos definidos:
        - CONTROL: saltos incondicionais e condicionais
        - COMPOSITE: agrupamento sequencial de Tasks
        - ITERATION: abertura, solução e relatório de iterações
        - DUAL: manipulação do problema dual (hiperplanos, cortes, limites)
        - PRIMAL: busca de soluções primais viáveis
        - TERMINATION: checks de parada e a Task terminal

    Decisões arquiteturais:
        - O tipo é puramente informativo
        - O Engine não utiliza `TaskKind` para decidir execução

    Este enum existe para enriquecer logs e o Manifest.
    """
    CONTROL = "control"
    COMPOSITE = "composite"
    ITERATION = "iteration"
    DUAL = "dual"
    PRIMAL = "primal"
    TERMINATION = "termination"


class RedirectKind(str, Enum):
    """
    Variantes do resultado de controle de fluxo de uma Task.

    Estados definidos:
        - CONTINUE: segue para a próxima entrada registrada
        - JUMP: move o cursor para a posição do nome alvo
        - HALT: encerra o schedule (apenas a Task terminal)
    """
    CONTINUE = "continue"
    JUMP = "jump"
    HALT = "halt"


@dataclass(frozen=True)
class Redirect:
    """
    Resultado imutável de `Task.run`.

    Um Redirect é consumido imediatamente pelo loop de execução e nunca
    é armazenado entre passos.

    Invariantes:
        - `JUMP` carrega sempre um `target` não vazio
        - `CONTINUE` e `HALT` nunca carregam `target`
    """
    kind: RedirectKind
    target: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind == RedirectKind.JUMP:
            if not isinstance(self.target, str) or not self.target.strip():
                raise ValueError("jump redirect requires a non-empty target name")
        elif self.target is not None:
            raise ValueError(f"{self.kind.value} redirect must not carry a target")

    @property
    def is_jump(self) -> bool:
        return self.kind == RedirectKind.JUMP

    @property
    def is_halt(self) -> bool:
        return self.kind == RedirectKind.HALT

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "target": self.target}


CONTINUE = Redirect(RedirectKind.CONTINUE)
HALT = Redirect(RedirectKind.HALT)


def jump_to(name: str) -> Redirect:
    """Cria um redirect para a primeira entrada registrada sob `name`."""
    return Redirect(RedirectKind.JUMP, name)


class SolutionStatus(str, Enum):
    """Status de término reportado por um sub-solver."""
    OPTIMAL = "optimal"
    SOLUTION_LIMIT = "solution_limit"
    FEASIBLE = "feasible"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    TIME_LIMIT = "time_limit"
    ERROR = "error"


@dataclass
class Iteration:
    """
    Registro de uma iteração do algoritmo.

    Criado por `SessionContext.start_iteration` e preenchido pelas Tasks
    de solução (status, objetivo, pontos) e de hiperplanos (contagem).
    """
    number: int
    status: Optional[SolutionStatus] = None
    objective_value: Optional[float] = None
    solution_points: List[np.ndarray] = field(default_factory=list)
    solution_limit: Optional[int] = None
    max_constraint_violation: Optional[float] = None
    hyperplanes_added: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "status": self.status.value if self.status is not None else None,
            "objective_value": self.objective_value,
            "solution_limit": self.solution_limit,
            "max_constraint_violation": self.max_constraint_violation,
            "hyperplanes_added": self.hyperplanes_added,
            "points": len(self.solution_points),
        }


@dataclass(frozen=True, eq=False)
class PrimalSolution:
    """Solução viável do problema original aceita como incumbente."""
    point: np.ndarray
    objective_value: float
    source: str
    iteration: int
    max_constraint_violation: float = 0.0


@dataclass(frozen=True, eq=False)
class Hyperplane:
    """
    Corte linear `coefficients · x <= rhs` pendente para o problema dual.

    Obtido pela linearização da restrição `constraint_index` em `point`:
    `g(p) + ∇g(p)·(x - p) <= 0`.
    """
    constraint_index: int
    point: np.ndarray
    coefficients: np.ndarray
    rhs: float
    iteration: int
    source: str = "ecp"
