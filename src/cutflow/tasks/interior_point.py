"""
Ponto interior e root search ao longo de segmentos.

A estratégia ESH (extended supporting hyperplane) precisa de um ponto
estritamente interior `p0` (todas as restrições com `g_i(p0) < 0`). Dado
um ponto exterior `x`, a bisseção em `t ∈ [0, 1]` sobre

    F(t) = max_i g_i(p0 + t·(x - p0))

separa o segmento num par de pontos que cerca a fronteira da região
viável: `inside` (F <= 0) e `outside` (F > 0), a no máximo
`dual.esh.rootsearch.tolerance` de distância em `t`.

Tasks:
    - FindInteriorPointTask: consulta o port `interior_point_solver` uma
      vez, antes da primeira iteração
    - UpdateInteriorPointTask: aproxima o ponto interior do incumbente
      primal sempre que este muda (`dual.esh.interior_point.use_primal`)

Sem ponto interior, a seleção ESH e o linesearch primal não têm como
operar: a primeira recai no ECP e o segundo é no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

import numpy as np

from cutflow.core.exceptions import EngineConfigurationError
from cutflow.core.pipeline.context import SessionContext
from cutflow.core.pipeline.ports import ProblemModel, max_constraint_value
from cutflow.core.pipeline.task import Task
from cutflow.core.pipeline.types import CONTINUE, PrimalSolution, Redirect, TaskKind


USE_PRIMAL_MODES = ("none", "replace", "average")


@dataclass(frozen=True, eq=False)
class SegmentRoot:
    """Par de pontos que cerca a fronteira ao longo de um segmento."""
    inside: np.ndarray
    outside: np.ndarray
    iterations: int


def is_strictly_interior(problem: ProblemModel, point: np.ndarray) -> bool:
    return max_constraint_value(problem, point) < 0.0


def root_search(
    problem: ProblemModel,
    interior: np.ndarray,
    exterior: np.ndarray,
    *,
    tolerance: float,
    max_iterations: int,
) -> SegmentRoot:
    """
    Bisseção de `max_i g_i` no segmento `interior → exterior`.

    Raises:
        ValueError: Se `interior` não for estritamente interior ou se
            `exterior` não violar nenhuma restrição.
    """
    interior = np.asarray(interior, dtype=float)
    exterior = np.asarray(exterior, dtype=float)
    if not is_strictly_interior(problem, interior):
        raise ValueError("root search requires a strictly interior start point")
    if max_constraint_value(problem, exterior) <= 0.0:
        raise ValueError("root search requires an exterior end point")

    direction = exterior - interior
    lo, hi = 0.0, 1.0
    iterations = 0
    while hi - lo > tolerance and iterations < max_iterations:
        mid = 0.5 * (lo + hi)
        if max_constraint_value(problem, interior + mid * direction) > 0.0:
            hi = mid
        else:
            lo = mid
        iterations += 1

    return SegmentRoot(
        inside=interior + lo * direction,
        outside=interior + hi * direction,
        iterations=iterations,
    )


def root_search_from_settings(ctx: SessionContext, exterior: np.ndarray) -> SegmentRoot:
    return root_search(
        ctx.require_problem(),
        ctx.interior_point,
        exterior,
        tolerance=float(ctx.setting("dual.esh.rootsearch.tolerance")),
        max_iterations=int(ctx.setting("dual.esh.rootsearch.max_iterations")),
    )


@dataclass(eq=False)
class FindInteriorPointTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.DUAL

    def _give_up(self, ctx: SessionContext, message: str, **extra) -> Redirect:
        ctx.log(task=self.type_name(), level="warning", message=message, **extra)
        ctx.add_warning(task=self.type_name(), message=f"{message}; hyperplanes fall back to ECP")
        return CONTINUE

    def run(self, ctx: SessionContext) -> Redirect:
        problem = ctx.require_problem()
        solver = ctx.interior_point_solver
        if solver is None:
            return self._give_up(ctx, "no interior point solver")

        try:
            candidate = solver.find_interior_point(problem)
        except Exception as e:
            return self._give_up(
                ctx,
                "interior point search failed",
                error_type=e.__class__.__name__,
                error_message=str(e) or "error",
            )

        if candidate is None:
            return self._give_up(ctx, "no interior point found")

        candidate = np.asarray(candidate, dtype=float)
        value = max_constraint_value(problem, candidate)
        if value >= 0.0:
            return self._give_up(ctx, "interior point candidate is not strictly interior", max_constraint_value=value)

        ctx.interior_point = candidate
        ctx.log(task=self.type_name(), level="info", message="interior point found", max_constraint_value=value)
        return CONTINUE


class UpdateInteriorPointTask(Task):
    """
    Move o ponto interior em direção ao incumbente primal.

    Modos (`dual.esh.interior_point.use_primal`):
        - none: nunca altera o ponto
        - replace: adota o incumbente se ele for estritamente interior
        - average: combina `(1 - w)·p0 + w·incumbente`, com
          `w = dual.esh.interior_point.primal_weight`; sem ponto interior,
          comporta-se como `replace`

    Um candidato só é aceito se for estritamente interior. Cada incumbente
    é considerado uma única vez.
    """

    kind: ClassVar[TaskKind] = TaskKind.DUAL

    def __init__(self) -> None:
        self._last_seen: Optional[PrimalSolution] = None

    def _candidate(self, ctx: SessionContext, incumbent: np.ndarray, mode: str) -> Optional[np.ndarray]:
        if mode == "none":
            return None
        if mode == "replace" or ctx.interior_point is None:
            return incumbent
        weight = float(ctx.setting("dual.esh.interior_point.primal_weight"))
        return (1.0 - weight) * ctx.interior_point + weight * incumbent

    def run(self, ctx: SessionContext) -> Redirect:
        incumbent = ctx.best_primal_solution
        if incumbent is None or incumbent is self._last_seen:
            return CONTINUE
        self._last_seen = incumbent

        mode = str(ctx.setting("dual.esh.interior_point.use_primal"))
        if mode not in USE_PRIMAL_MODES:
            raise EngineConfigurationError(
                message=f"Unknown interior point update mode: {mode!r}",
                details={"setting": "dual.esh.interior_point.use_primal", "value": mode, "allowed": list(USE_PRIMAL_MODES)},
                hint="Use none, replace ou average",
            )

        candidate = self._candidate(ctx, incumbent.point, mode)
        if candidate is None or not is_strictly_interior(ctx.require_problem(), candidate):
            return CONTINUE

        ctx.interior_point = np.asarray(candidate, dtype=float)
        ctx.log(
            task=self.type_name(),
            level="debug",
            message="interior point updated",
            mode=mode,
            iteration=ctx.iteration_number,
        )
        return CONTINUE
