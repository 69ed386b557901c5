"""Tasks de busca primal.

Um candidato é aceito como incumbente quando sua violação máxima de
restrições não passa de `primal.feasibility_tolerance` e seu objetivo
melhora o bound primal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

import numpy as np

from cutflow.core.pipeline.context import SessionContext
from cutflow.core.pipeline.ports import constraint_violation
from cutflow.core.pipeline.task import Task
from cutflow.core.pipeline.types import CONTINUE, Redirect, TaskKind

from .interior_point import root_search_from_settings


def _offer_candidate(ctx: SessionContext, point: np.ndarray, *, source: str) -> bool:
    problem = ctx.require_problem()
    violation = constraint_violation(problem, point)
    if violation > float(ctx.setting("primal.feasibility_tolerance")):
        return False
    return ctx.update_primal_bound(
        problem.objective_value(point),
        point=point,
        source=source,
        max_constraint_violation=violation,
    )


@dataclass(eq=False)
class SelectPrimalCandidatesFromSolutionPoolTask(Task):
    """Testa os pontos da iteração corrente contra o problema original."""

    kind: ClassVar[TaskKind] = TaskKind.PRIMAL

    def run(self, ctx: SessionContext) -> Redirect:
        iteration = ctx.current_iteration
        if iteration is None:
            return CONTINUE

        improved = 0
        for point in iteration.solution_points:
            if _offer_candidate(ctx, point, source="solution_pool"):
                improved += 1

        if improved:
            ctx.log(
                task=self.type_name(),
                level="info",
                message="primal bound improved",
                primal_bound=ctx.primal_bound,
                iteration=iteration.number,
            )
        return CONTINUE


@dataclass(eq=False)
class SelectPrimalCandidatesFromNLPTask(Task):
    """Resolve o subproblema com inteiros fixos a partir do melhor ponto da iteração."""

    kind: ClassVar[TaskKind] = TaskKind.PRIMAL

    def run(self, ctx: SessionContext) -> Redirect:
        solver = ctx.primal_solver
        iteration = ctx.current_iteration
        if solver is None or iteration is None or not iteration.solution_points:
            return CONTINUE

        try:
            result = solver.solve_fixed_integer(iteration.solution_points[0])
        except Exception as e:
            ctx.log(
                task=self.type_name(),
                level="warning",
                message="fixed-integer subproblem failed",
                error_type=e.__class__.__name__,
                error_message=str(e) or "error",
            )
            ctx.add_warning(task=self.type_name(), message=f"iteration {iteration.number}: primal solver failed")
            return CONTINUE

        if result is None:
            return CONTINUE

        if _offer_candidate(ctx, np.asarray(result, dtype=float), source="fixed_integer_nlp"):
            ctx.log(
                task=self.type_name(),
                level="info",
                message="primal bound improved",
                primal_bound=ctx.primal_bound,
                iteration=iteration.number,
            )
        return CONTINUE


@dataclass(eq=False)
class SelectPrimalCandidatesFromLinesearchTask(Task):
    """
    Oferece como candidatos os pontos da fronteira vistos pelo lado viável.

    Para cada ponto inviável da iteração corrente, o root search a partir
    do ponto interior devolve o par `inside`/`outside`; `inside` satisfaz
    todas as restrições e é testado contra o bound primal. Sem ponto
    interior a Task é no-op.
    """

    kind: ClassVar[TaskKind] = TaskKind.PRIMAL

    def run(self, ctx: SessionContext) -> Redirect:
        iteration = ctx.current_iteration
        if iteration is None or ctx.interior_point is None or not iteration.solution_points:
            return CONTINUE

        problem = ctx.require_problem()
        tolerance = float(ctx.setting("primal.feasibility_tolerance"))
        improved = 0
        for point in iteration.solution_points:
            if constraint_violation(problem, point) <= tolerance:
                continue
            root = root_search_from_settings(ctx, point)
            if _offer_candidate(ctx, root.inside, source="linesearch"):
                improved += 1

        if improved:
            ctx.log(
                task=self.type_name(),
                level="info",
                message="primal bound improved",
                primal_bound=ctx.primal_bound,
                iteration=iteration.number,
            )
        return CONTINUE
