"""Tasks de ciclo de iteração: abertura, solução do subproblema dual e relatório.

`SolveIterationTask` recupera localmente falhas do solver dual: a
iteração é marcada com status `error` e o schedule segue; quem decide o
que fazer é `CheckIterationErrorTask`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

import numpy as np

from cutflow.core.pipeline.context import SessionContext
from cutflow.core.pipeline.ports import constraint_violation
from cutflow.core.pipeline.task import Task
from cutflow.core.pipeline.types import CONTINUE, Iteration, Redirect, SolutionStatus, TaskKind


def _require_iteration(ctx: SessionContext, task: Task) -> Iteration:
    iteration = ctx.current_iteration
    if iteration is None:
        raise RuntimeError(f"{task.type_name()} requires an open iteration")
    return iteration


@dataclass(eq=False)
class InitializeIterationTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.ITERATION

    def run(self, ctx: SessionContext) -> Redirect:
        iteration = ctx.start_iteration()
        ctx.log(task=self.type_name(), level="debug", message="iteration opened", iteration=iteration.number)
        return CONTINUE


@dataclass(eq=False)
class SolveIterationTask(Task):
    """Resolve a relaxação dual corrente e registra o resultado na iteração."""

    kind: ClassVar[TaskKind] = TaskKind.ITERATION

    def run(self, ctx: SessionContext) -> Redirect:
        iteration = _require_iteration(ctx, self)
        solver = ctx.require_dual_solver()
        problem = ctx.require_problem()

        iteration.solution_limit = solver.get_solution_limit()

        try:
            solution = solver.solve()
        except Exception as e:
            iteration.status = SolutionStatus.ERROR
            ctx.log(
                task=self.type_name(),
                level="error",
                message="dual solver failed",
                iteration=iteration.number,
                error_type=e.__class__.__name__,
                error_message=str(e) or "error",
            )
            ctx.add_warning(task=self.type_name(), message=f"iteration {iteration.number}: dual solver failed")
            return CONTINUE

        iteration.status = solution.status
        iteration.objective_value = solution.objective_value
        iteration.solution_points = [np.asarray(p, dtype=float) for p in solution.points]

        if iteration.solution_points:
            iteration.max_constraint_violation = constraint_violation(problem, iteration.solution_points[0])

        if solution.status == SolutionStatus.OPTIMAL:
            bound = solution.dual_bound if solution.dual_bound is not None else solution.objective_value
            if bound is not None:
                ctx.update_dual_bound(bound)

        ctx.log(
            task=self.type_name(),
            level="info",
            message="iteration solved",
            iteration=iteration.number,
            status=solution.status.value,
            objective_value=solution.objective_value,
            solution_limit=iteration.solution_limit,
            points=len(iteration.solution_points),
        )
        return CONTINUE


@dataclass(eq=False)
class PrintIterationReportTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.ITERATION

    def run(self, ctx: SessionContext) -> Redirect:
        iteration = ctx.current_iteration
        ctx.log(
            task=self.type_name(),
            level="info",
            message="iteration report",
            iteration=iteration.to_dict() if iteration is not None else None,
            primal_bound=ctx.primal_bound,
            dual_bound=ctx.dual_bound,
            absolute_gap=ctx.absolute_gap(),
            relative_gap=ctx.relative_gap(),
            cuts_added=ctx.cuts_added,
            elapsed_seconds=ctx.elapsed_seconds(),
        )
        return CONTINUE
