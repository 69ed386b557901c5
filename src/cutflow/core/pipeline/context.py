# src/cutflow/core/pipeline/context.py
"""
Contexto de sessão compartilhado por todas as Tasks.

Este módulo define o `SessionContext`, a estrutura canônica passada a
cada `Task.run`. É o único meio permitido de troca de estado entre
Tasks durante uma run do algoritmo.

O SessionContext consolida:
    - identidade da run (run_id, created_at) e settings resolvidos
    - ports externos (modelo do problema, solver dual, solver primal)
    - bounds primal/dual e gaps derivados
    - histórico de iterações e pool de soluções primais
    - fila de hiperplanos pendentes e ponto interior (ESH)
    - cutoff de objetivo imposto pelos cortes de redução
    - relógio da run, pedido de abort e motivo de término
    - artifact store, logs estruturados e warnings

Convenções:
    - Minimização: o bound primal desce a partir de +inf e o dual sobe
      a partir de -inf
    - Iterações são numeradas a partir de 1

Invariantes:
    - Cada run possui um SessionContext único
    - Logs sempre incluem `run_id` e `task`
    - Warnings são agrupados por `task`
    - `events` retém no máximo `engine.max_log_events` entradas (as mais recentes)
    - `setting(path)` consulta os settings da run e depois `DEFAULT_SETTINGS`

Limites explícitos:
    - Não executa Tasks
    - Não decide fluxo de controle
    - Não registra eventos no Manifest (isso é do Engine)

Este módulo existe para garantir isolamento e comunicação explícita
entre Tasks.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from collections import deque
from typing import TYPE_CHECKING, Any, Callable, Deque, Dict, List, Optional

import numpy as np

from cutflow.core.config.defaults import DEFAULT_SETTINGS
from cutflow.core.exceptions import EngineConfigurationError

from .ports import DualSolver, InteriorPointSolver, PrimalSolver, ProblemModel
from .types import Hyperplane, Iteration, PrimalSolution

if TYPE_CHECKING:
    from cutflow.core.traceability.manifest import RunManifest


_MISSING = object()

# Denominador mínimo do gap relativo.
_GAP_EPSILON = 1e-10


def _lookup(tree: Dict[str, Any], path: str) -> Any:
    node: Any = tree
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


@dataclass
class SessionContext:
    """
    Contexto de sessão de uma run do algoritmo.

    Decisões arquiteturais:
        - Tasks interagem apenas via SessionContext
        - Ports são opcionais na construção; Tasks que dependem deles
          usam `require_*` e falham com `EngineConfigurationError`
        - O relógio é injetável para testes determinísticos

    Invariantes:
        - `primal_bound` nunca aumenta e `dual_bound` nunca diminui
        - `iterations` está em ordem crescente de número
    """
    run_id: str
    created_at: datetime
    config: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)
    problem: Optional[ProblemModel] = None
    dual_solver: Optional[DualSolver] = None
    primal_solver: Optional[PrimalSolver] = None
    interior_point_solver: Optional[InteriorPointSolver] = None
    manifest: Optional["RunManifest"] = None
    clock: Callable[[], float] = time.monotonic

    _artifacts: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    events: Deque[Dict[str, Any]] = field(default_factory=deque, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    primal_bound: float = field(default=math.inf, init=False)
    dual_bound: float = field(default=-math.inf, init=False)
    primal_solutions: List[PrimalSolution] = field(default_factory=list, init=False)
    iterations: List[Iteration] = field(default_factory=list, init=False)
    iteration_last_primal_update: int = field(default=0, init=False)
    iteration_last_dual_update: int = field(default=0, init=False)
    cuts_added: int = field(default=0, init=False)
    primal_reduction_cuts: int = field(default=0, init=False)
    abort_requested: bool = field(default=False, init=False)
    termination_reason: Optional[str] = field(default=None, init=False)
    objective_cutoff: Optional[float] = field(default=None, init=False)
    interior_point: Optional[np.ndarray] = field(default=None, init=False)

    _hyperplanes: List[Hyperplane] = field(default_factory=list, init=False, repr=False)
    _started_at: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self) -> None:
        self._started_at = self.clock()
        limit = self.setting("engine.max_log_events")
        self.events = deque(maxlen=int(limit) if limit else None)

    # -----------------------------
    # Artifact store
    # -----------------------------
    def set_artifact(self, key: str, value: Any) -> None:
        self._artifacts[key] = value

    def has_artifact(self, key: str) -> bool:
        return key in self._artifacts

    def get_artifact(self, key: str) -> Any:
        if key not in self._artifacts:
            raise KeyError(key)
        return self._artifacts[key]

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, task: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "task": task,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, task: str, message: str) -> None:
        self.warnings.setdefault(task, []).append(message)

    # -----------------------------
    # Settings
    # -----------------------------
    def setting(self, path: str) -> Any:
        """
        Valor do setting `path` (ex.: "termination.absolute_gap").

        Raises:
            KeyError: Se o caminho não existir nem nos settings da run
                nem em `DEFAULT_SETTINGS`.
        """
        value = _lookup(self.config or {}, path)
        if value is _MISSING:
            value = _lookup(DEFAULT_SETTINGS, path)
        if value is _MISSING:
            raise KeyError(path)
        return value

    # -----------------------------
    # Ports
    # -----------------------------
    def require_problem(self) -> ProblemModel:
        if self.problem is None:
            raise EngineConfigurationError(
                message="SessionContext has no problem model",
                details={"port": "problem"},
                hint="Informe `problem=` ao criar o SessionContext",
            )
        return self.problem

    def require_dual_solver(self) -> DualSolver:
        if self.dual_solver is None:
            raise EngineConfigurationError(
                message="SessionContext has no dual solver",
                details={"port": "dual_solver"},
                hint="Informe `dual_solver=` ao criar o SessionContext",
            )
        return self.dual_solver

    # -----------------------------
    # Iterations
    # -----------------------------
    def start_iteration(self) -> Iteration:
        iteration = Iteration(number=len(self.iterations) + 1)
        self.iterations.append(iteration)
        return iteration

    @property
    def current_iteration(self) -> Optional[Iteration]:
        return self.iterations[-1] if self.iterations else None

    @property
    def previous_iteration(self) -> Optional[Iteration]:
        return self.iterations[-2] if len(self.iterations) >= 2 else None

    @property
    def iteration_number(self) -> int:
        return len(self.iterations)

    def iterations_since_primal_update(self) -> int:
        return self.iteration_number - self.iteration_last_primal_update

    def iterations_since_dual_update(self) -> int:
        return self.iteration_number - self.iteration_last_dual_update

    # -----------------------------
    # Bounds & gaps
    # -----------------------------
    def update_primal_bound(
        self,
        value: float,
        *,
        point: np.ndarray,
        source: str,
        max_constraint_violation: float = 0.0,
    ) -> bool:
        """Aceita `point` como incumbente se melhorar o bound primal."""
        value = float(value)
        if not value < self.primal_bound:
            return False

        self.primal_bound = value
        self.iteration_last_primal_update = self.iteration_number
        self.primal_solutions.append(
            PrimalSolution(
                point=np.asarray(point, dtype=float),
                objective_value=value,
                source=source,
                iteration=self.iteration_number,
                max_constraint_violation=float(max_constraint_violation),
            )
        )
        return True

    def update_dual_bound(self, value: float) -> bool:
        value = float(value)
        if not value > self.dual_bound:
            return False
        self.dual_bound = value
        self.iteration_last_dual_update = self.iteration_number
        return True

    @property
    def best_primal_solution(self) -> Optional[PrimalSolution]:
        return self.primal_solutions[-1] if self.primal_solutions else None

    def absolute_gap(self) -> float:
        if math.isinf(self.primal_bound) or math.isinf(self.dual_bound):
            return math.inf
        return abs(self.primal_bound - self.dual_bound)

    def relative_gap(self) -> float:
        if math.isinf(self.primal_bound) or math.isinf(self.dual_bound):
            return math.inf
        return abs(self.primal_bound - self.dual_bound) / (_GAP_EPSILON + abs(self.primal_bound))

    # -----------------------------
    # Hyperplanes
    # -----------------------------
    def add_hyperplane(self, hyperplane: Hyperplane) -> None:
        self._hyperplanes.append(hyperplane)

    def take_hyperplanes(self) -> List[Hyperplane]:
        pending, self._hyperplanes = self._hyperplanes, []
        return pending

    @property
    def pending_hyperplanes(self) -> int:
        return len(self._hyperplanes)

    # -----------------------------
    # Time & termination
    # -----------------------------
    def elapsed_seconds(self) -> float:
        return self.clock() - self._started_at

    def remaining_time(self) -> float:
        return float(self.setting("termination.time_limit")) - self.elapsed_seconds()

    def request_abort(self) -> None:
        self.abort_requested = True

    def terminate(self, reason: str) -> None:
        self.termination_reason = reason

    def resume(self) -> None:
        """Descarta o motivo de término para o laço voltar a iterar."""
        self.termination_reason = None
