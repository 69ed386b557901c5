# src/cutflow/core/pipeline/ports.py
"""
Ports (interfaces) consumidos pelas Tasks.

O core depende de Protocols em vez de solvers concretos. Modelos de
problema, solvers duais (LP/MIP), solvers primais (NLP com inteiros
fixos) e a busca de ponto interior são colaboradores externos e entram
no `SessionContext` apenas através destes contratos.

Convenções:
    - Minimização; restrições na forma `g_i(x) <= 0`
    - Pontos são `numpy.ndarray` 1-D de floats
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import numpy as np

from .types import Hyperplane, SolutionStatus


@dataclass(frozen=True, eq=False)
class DualSolution:
    """Resultado de uma chamada a `DualSolver.solve`."""
    status: SolutionStatus
    objective_value: Optional[float] = None
    dual_bound: Optional[float] = None
    points: Sequence[np.ndarray] = ()


class ProblemModel(Protocol):
    """Avaliação do problema original (objetivo, restrições, gradientes)."""

    is_discrete: bool

    def objective_value(self, point: np.ndarray) -> float: ...

    def constraint_values(self, point: np.ndarray) -> np.ndarray: ...

    def constraint_gradient(self, index: int, point: np.ndarray) -> np.ndarray: ...


class DualSolver(Protocol):
    """Relaxação poliedral (LP/MIP) refinada por hiperplanos."""

    def add_hyperplane(self, hyperplane: Hyperplane) -> None: ...

    def solve(self) -> DualSolution: ...

    def get_solution_limit(self) -> int: ...

    def set_solution_limit(self, limit: int) -> None: ...

    def set_cutoff(self, value: float) -> None: ...


class PrimalSolver(Protocol):
    """Subproblema contínuo com as variáveis inteiras fixadas."""

    def solve_fixed_integer(self, point: np.ndarray) -> Optional[np.ndarray]: ...


class InteriorPointSolver(Protocol):
    """Busca de um ponto estritamente interior (`g_i(x) < 0` para todo i)."""

    def find_interior_point(self, problem: ProblemModel) -> Optional[np.ndarray]: ...


def constraint_violation(problem: ProblemModel, point: np.ndarray) -> float:
    """Maior violação `max(0, g_i(point))`; `0.0` quando não há restrições."""
    values = np.asarray(problem.constraint_values(point), dtype=float)
    if values.size == 0:
        return 0.0
    return float(max(0.0, np.max(values)))


def max_constraint_value(problem: ProblemModel, point: np.ndarray) -> float:
    """Maior `g_i(point)` com sinal; `-inf` quando não há restrições."""
    values = np.asarray(problem.constraint_values(point), dtype=float)
    if values.size == 0:
        return -np.inf
    return float(np.max(values))
