"""
Checks de término e de estagnação.

Cada check é um `ConditionalTask` cujo predicado lê o `SessionContext` e
os settings da seção `termination`. Quando um check de término dispara,
ele grava o motivo via `ctx.terminate(reason)` e salta para o alvo
(tipicamente a finalização da solução).

Motivos registrados:
    - absolute_gap, relative_gap
    - iteration_limit, time_limit, user_abort
    - constraint_tolerance
    - dual_stagnation, max_primal_reduction_cuts
    - o status da iteração (ex.: "infeasible") para `CheckIterationErrorTask`,
      ou `cutoff_infeasible` quando a inviabilidade segue um corte de redução

`CheckPrimalStagnationTask` é um desvio de dois ramos e não encerra a run.
"""

from __future__ import annotations

from typing import ClassVar, FrozenSet

from cutflow.core.pipeline.context import SessionContext
from cutflow.core.pipeline.types import SolutionStatus, TaskKind

from .control import ConditionalTask


class TerminationCheck(ConditionalTask):
    """Base de checks de alvo único que encerram a run quando disparam."""

    kind: ClassVar[TaskKind] = TaskKind.TERMINATION
    reason: ClassVar[str] = "terminated"

    def __init__(self, target: str):
        super().__init__(self.condition, target)

    def condition(self, ctx: SessionContext) -> bool:
        raise NotImplementedError

    def reason_for(self, ctx: SessionContext) -> str:
        return self.reason

    def on_true(self, ctx: SessionContext) -> None:
        reason = self.reason_for(ctx)
        ctx.terminate(reason)
        ctx.log(
            task=self.type_name(),
            level="info",
            message="termination criterion met",
            reason=reason,
            iteration=ctx.iteration_number,
            primal_bound=ctx.primal_bound,
            dual_bound=ctx.dual_bound,
        )


class CheckAbsoluteGapTask(TerminationCheck):
    reason = "absolute_gap"

    def condition(self, ctx: SessionContext) -> bool:
        return ctx.absolute_gap() <= float(ctx.setting("termination.absolute_gap"))


class CheckRelativeGapTask(TerminationCheck):
    reason = "relative_gap"

    def condition(self, ctx: SessionContext) -> bool:
        return ctx.relative_gap() <= float(ctx.setting("termination.relative_gap"))


class CheckIterationLimitTask(TerminationCheck):
    reason = "iteration_limit"

    def condition(self, ctx: SessionContext) -> bool:
        return ctx.iteration_number >= int(ctx.setting("termination.iteration_limit"))


class CheckTimeLimitTask(TerminationCheck):
    reason = "time_limit"

    def condition(self, ctx: SessionContext) -> bool:
        return ctx.elapsed_seconds() >= float(ctx.setting("termination.time_limit"))


class CheckUserTerminationTask(TerminationCheck):
    reason = "user_abort"

    def condition(self, ctx: SessionContext) -> bool:
        return ctx.abort_requested


class CheckIterationErrorTask(TerminationCheck):
    """
    Dispara quando o último subproblema dual terminou sem solução utilizável.

    Relaxação inviável depois de um cutoff de objetivo prova que nenhuma
    solução melhor que o cutoff existe: o motivo passa a ser
    `cutoff_infeasible` e o bound dual sobe até o cutoff.
    """

    failing: ClassVar[FrozenSet[SolutionStatus]] = frozenset(
        {SolutionStatus.ERROR, SolutionStatus.INFEASIBLE, SolutionStatus.UNBOUNDED}
    )

    def condition(self, ctx: SessionContext) -> bool:
        iteration = ctx.current_iteration
        return iteration is not None and iteration.status in self.failing

    def _cutoff_proven(self, ctx: SessionContext) -> bool:
        return ctx.current_iteration.status == SolutionStatus.INFEASIBLE and ctx.objective_cutoff is not None

    def reason_for(self, ctx: SessionContext) -> str:
        if self._cutoff_proven(ctx):
            return "cutoff_infeasible"
        return ctx.current_iteration.status.value

    def on_true(self, ctx: SessionContext) -> None:
        if self._cutoff_proven(ctx):
            ctx.update_dual_bound(min(ctx.objective_cutoff, ctx.primal_bound))
        super().on_true(ctx)


class CheckConstraintToleranceTask(TerminationCheck):
    """Solução ótima da relaxação já é viável para o problema original."""

    reason = "constraint_tolerance"

    def condition(self, ctx: SessionContext) -> bool:
        iteration = ctx.current_iteration
        if iteration is None or iteration.status != SolutionStatus.OPTIMAL:
            return False
        if iteration.max_constraint_violation is None:
            return False
        return iteration.max_constraint_violation <= float(ctx.setting("termination.constraint_tolerance"))


class CheckDualStagnationTask(TerminationCheck):
    reason = "dual_stagnation"

    def condition(self, ctx: SessionContext) -> bool:
        limit = int(ctx.setting("termination.dual_stagnation_iterations"))
        return ctx.iterations_since_dual_update() >= limit


class CheckMaxPrimalReductionCutsTask(TerminationCheck):
    reason = "max_primal_reduction_cuts"

    def condition(self, ctx: SessionContext) -> bool:
        limit = int(ctx.setting("termination.max_primal_reduction_cuts"))
        return ctx.primal_reduction_cuts > 0 and ctx.primal_reduction_cuts >= limit


class CheckPrimalStagnationTask(ConditionalTask):
    """Desvia para `true_target` quando o bound primal não melhora há N iterações."""

    kind: ClassVar[TaskKind] = TaskKind.TERMINATION

    def __init__(self, true_target: str, false_target: str):
        super().__init__(self.condition, true_target, false_target)

    def condition(self, ctx: SessionContext) -> bool:
        if not ctx.primal_solutions:
            return False
        limit = int(ctx.setting("termination.primal_stagnation_iterations"))
        return ctx.iterations_since_primal_update() >= limit
