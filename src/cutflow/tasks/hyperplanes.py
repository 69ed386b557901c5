"""
Tasks do problema dual: seleção e adição de hiperplanos, cortes de redução.

Seleção ECP (extended cutting plane):
    para cada ponto da iteração anterior, as restrições violadas além de
    `termination.constraint_tolerance` são linearizadas no ponto,
    `g(p) + ∇g(p)·(x - p) <= 0`, em ordem decrescente de violação e até
    `dual.hyperplanes.max_per_iteration` cortes por iteração.

Seleção ESH (extended supporting hyperplane):
    o ponto violado é primeiro projetado na fronteira por root search a
    partir do ponto interior (`interior_point.root_search`); as
    restrições violadas são linearizadas no ponto `outside` encontrado,
    em ordem decrescente de valor nesse ponto. Sem ponto interior, a
    seleção recai no ECP.

A seleção lê a iteração *anterior* porque, no schedule, ela roda depois
de `InitIter2` ter aberto a iteração seguinte.

Corte de redução primal:
    enquanto houver orçamento (`termination.max_primal_reduction_cuts`),
    um bound primal finito e a run não tiver sido encerrada por um
    motivo definitivo, impõe ao solver dual o cutoff
    `primal - factor * max(1, |primal|)` e salta para `true_target`;
    caso contrário salta para `false_target`. Quando a run já estava
    encerrada por um motivo retomável (`dual_stagnation`,
    `constraint_tolerance`), o motivo é descartado e o laço recomeça.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, FrozenSet, Tuple

import numpy as np

from cutflow.core.pipeline.context import SessionContext
from cutflow.core.pipeline.ports import ProblemModel
from cutflow.core.pipeline.task import Task
from cutflow.core.pipeline.types import CONTINUE, Hyperplane, Iteration, Redirect, TaskKind, jump_to

from .interior_point import root_search_from_settings


def _linearize(
    ctx: SessionContext,
    problem: ProblemModel,
    index: int,
    point: np.ndarray,
    value: float,
    *,
    iteration: int,
    source: str,
) -> None:
    gradient = np.asarray(problem.constraint_gradient(index, point), dtype=float)
    ctx.add_hyperplane(
        Hyperplane(
            constraint_index=index,
            point=point,
            coefficients=gradient,
            rhs=float(gradient @ point - value),
            iteration=iteration,
            source=source,
        )
    )


def _select_ecp(ctx: SessionContext, source: Iteration) -> int:
    problem = ctx.require_problem()
    tolerance = float(ctx.setting("termination.constraint_tolerance"))
    budget = int(ctx.setting("dual.hyperplanes.max_per_iteration"))
    selected = 0

    for point in source.solution_points:
        values = np.asarray(problem.constraint_values(point), dtype=float)
        for index in np.argsort(-values, kind="stable"):
            if selected >= budget or values[index] <= tolerance:
                break
            _linearize(ctx, problem, int(index), point, values[index], iteration=source.number, source="ecp")
            selected += 1
    return selected


def _select_esh(ctx: SessionContext, source: Iteration) -> int:
    problem = ctx.require_problem()
    tolerance = float(ctx.setting("termination.constraint_tolerance"))
    budget = int(ctx.setting("dual.hyperplanes.max_per_iteration"))
    selected = 0

    for point in source.solution_points:
        if selected >= budget:
            break
        values = np.asarray(problem.constraint_values(point), dtype=float)
        violated = values > tolerance
        if not violated.any():
            continue

        boundary = root_search_from_settings(ctx, point).outside
        boundary_values = np.asarray(problem.constraint_values(boundary), dtype=float)
        for index in np.argsort(-boundary_values, kind="stable"):
            if selected >= budget:
                break
            if not violated[index]:
                continue
            _linearize(
                ctx,
                problem,
                int(index),
                boundary,
                boundary_values[index],
                iteration=source.number,
                source="esh",
            )
            selected += 1
    return selected


@dataclass(eq=False)
class SelectHyperplanePointsECPTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.DUAL

    def run(self, ctx: SessionContext) -> Redirect:
        source = ctx.previous_iteration
        if source is None or not source.solution_points:
            return CONTINUE

        selected = _select_ecp(ctx, source)
        ctx.log(
            task=self.type_name(),
            level="debug",
            message="hyperplanes selected",
            iteration=source.number,
            selected=selected,
        )
        return CONTINUE


@dataclass(eq=False)
class SelectHyperplanePointsESHTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.DUAL

    def run(self, ctx: SessionContext) -> Redirect:
        source = ctx.previous_iteration
        if source is None or not source.solution_points:
            return CONTINUE

        if ctx.interior_point is None:
            method = "ecp"
            selected = _select_ecp(ctx, source)
        else:
            method = "esh"
            selected = _select_esh(ctx, source)

        ctx.log(
            task=self.type_name(),
            level="debug",
            message="hyperplanes selected",
            iteration=source.number,
            selected=selected,
            method=method,
        )
        return CONTINUE


@dataclass(eq=False)
class AddHyperplanesTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.DUAL

    def run(self, ctx: SessionContext) -> Redirect:
        pending = ctx.take_hyperplanes()
        if not pending:
            return CONTINUE

        solver = ctx.require_dual_solver()
        for hyperplane in pending:
            solver.add_hyperplane(hyperplane)

        ctx.cuts_added += len(pending)
        if ctx.current_iteration is not None:
            ctx.current_iteration.hyperplanes_added += len(pending)

        ctx.log(task=self.type_name(), level="debug", message="hyperplanes added", count=len(pending))
        return CONTINUE


class AddPrimalReductionCutTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.DUAL
    resumable_reasons: ClassVar[FrozenSet[str]] = frozenset({"dual_stagnation", "constraint_tolerance"})

    def __init__(self, true_target: str, false_target: str):
        self.true_target = true_target
        self.false_target = false_target

    def jump_targets(self) -> Tuple[str, ...]:
        return (self.true_target, self.false_target)

    def _applicable(self, ctx: SessionContext) -> bool:
        budget = int(ctx.setting("termination.max_primal_reduction_cuts"))
        if math.isinf(ctx.primal_bound) or ctx.primal_reduction_cuts >= budget:
            return False
        reason = ctx.termination_reason
        return reason is None or reason in self.resumable_reasons

    def run(self, ctx: SessionContext) -> Redirect:
        if not self._applicable(ctx):
            return jump_to(self.false_target)

        factor = float(ctx.setting("primal.reduction_cut.factor"))
        cutoff = ctx.primal_bound - factor * max(1.0, abs(ctx.primal_bound))

        ctx.require_dual_solver().set_cutoff(cutoff)
        ctx.objective_cutoff = cutoff
        ctx.primal_reduction_cuts += 1
        ctx.log(
            task=self.type_name(),
            level="info",
            message="primal reduction cut added",
            cutoff=cutoff,
            reduction_cuts=ctx.primal_reduction_cuts,
        )

        if ctx.termination_reason is not None:
            ctx.log(
                task=self.type_name(),
                level="info",
                message="run resumed",
                discarded_reason=ctx.termination_reason,
            )
            ctx.resume()
        return jump_to(self.true_target)
