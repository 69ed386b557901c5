"""
Task adaptativa de limite de soluções do solver dual (MIP).

`ExecuteSolutionLimitTask` ajusta, a cada iteração, quantas soluções
inteiras o solver dual pode encontrar antes de parar. A política de
ajuste é plugável (`SolutionLimitStrategy`); a Task cuida apenas do
ciclo de vida do limite.

Estado privado (persistente entre execuções da mesma instância):
    - initialized: o limite inicial já foi aplicado
    - temporary_limit_active: um limite temporário "ilimitado" está ativo
    - saved_limit: limite a restaurar quando o temporário expira

A cada execução:
    1. Na primeira chamada, guarda o limite corrente do solver e aplica
       `strategy.initial_limit(ctx)`.
    2. Se um limite temporário estiver ativo, restaura `saved_limit`.
    3. Se o bound dual não melhora há `dual.solution_limit.force_optimal_after`
       iterações, guarda o limite corrente, aplica `SOLUTION_LIMIT_UNBOUNDED`
       e marca o temporário como ativo.
    4. Senão, se `strategy.update_limit(ctx)`, aplica `strategy.new_limit(ctx)`.
    5. Sempre devolve `CONTINUE`.

Estratégias disponíveis:
    - unlimited: limite sempre `SOLUTION_LIMIT_UNBOUNDED`
    - increase: soma `increment` quando o bound dual estagna por `increase_after` iterações
    - adaptive: soma `increment` quando a iteração anterior parou no limite
      com um ponto quase viável (violação <= `adaptive_tolerance`)
"""

from __future__ import annotations

from typing import Callable, ClassVar, Dict, Optional, Protocol

from cutflow.core.exceptions import EngineConfigurationError
from cutflow.core.pipeline.context import SessionContext
from cutflow.core.pipeline.task import Task
from cutflow.core.pipeline.types import CONTINUE, Redirect, SolutionStatus, TaskKind


SOLUTION_LIMIT_UNBOUNDED = 2_100_000_000


class SolutionLimitStrategy(Protocol):
    def initial_limit(self, ctx: SessionContext) -> int: ...

    def update_limit(self, ctx: SessionContext) -> bool: ...

    def new_limit(self, ctx: SessionContext) -> int: ...


class UnlimitedSolutionLimit:
    def initial_limit(self, ctx: SessionContext) -> int:
        return SOLUTION_LIMIT_UNBOUNDED

    def update_limit(self, ctx: SessionContext) -> bool:
        return False

    def new_limit(self, ctx: SessionContext) -> int:
        return SOLUTION_LIMIT_UNBOUNDED


class IncreaseSolutionLimit:
    def initial_limit(self, ctx: SessionContext) -> int:
        return int(ctx.setting("dual.solution_limit.initial"))

    def update_limit(self, ctx: SessionContext) -> bool:
        if ctx.iteration_number == 0:
            return False
        return ctx.iterations_since_dual_update() >= int(ctx.setting("dual.solution_limit.increase_after"))

    def new_limit(self, ctx: SessionContext) -> int:
        current = ctx.require_dual_solver().get_solution_limit()
        return current + int(ctx.setting("dual.solution_limit.increment"))


class AdaptiveSolutionLimit(IncreaseSolutionLimit):
    def update_limit(self, ctx: SessionContext) -> bool:
        previous = ctx.previous_iteration
        if previous is None or previous.status != SolutionStatus.SOLUTION_LIMIT:
            return False
        if previous.max_constraint_violation is None:
            return False
        return previous.max_constraint_violation <= float(ctx.setting("dual.solution_limit.adaptive_tolerance"))


SOLUTION_LIMIT_STRATEGIES: Dict[str, Callable[[], SolutionLimitStrategy]] = {
    "unlimited": UnlimitedSolutionLimit,
    "increase": IncreaseSolutionLimit,
    "adaptive": AdaptiveSolutionLimit,
}


def solution_limit_strategy_from_settings(ctx: SessionContext) -> SolutionLimitStrategy:
    name = ctx.setting("dual.solution_limit.strategy")
    factory = SOLUTION_LIMIT_STRATEGIES.get(name)
    if factory is None:
        raise EngineConfigurationError(
            message=f"Unknown solution limit strategy: {name!r}",
            details={"setting": "dual.solution_limit.strategy", "value": name, "allowed": sorted(SOLUTION_LIMIT_STRATEGIES)},
            hint="Use unlimited, increase ou adaptive",
        )
    return factory()


class ExecuteSolutionLimitTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.DUAL

    def __init__(self, strategy: SolutionLimitStrategy):
        self.strategy = strategy
        self.initialized = False
        self.temporary_limit_active = False
        self.saved_limit: Optional[int] = None

    def _set_limit(self, ctx: SessionContext, limit: int, *, reason: str) -> None:
        ctx.require_dual_solver().set_solution_limit(int(limit))
        ctx.log(task=self.type_name(), level="debug", message="solution limit set", limit=int(limit), reason=reason)

    def _force_optimal_due(self, ctx: SessionContext) -> bool:
        threshold = ctx.setting("dual.solution_limit.force_optimal_after")
        if threshold is None or ctx.iteration_number == 0:
            return False
        return ctx.iterations_since_dual_update() >= int(threshold)

    def run(self, ctx: SessionContext) -> Redirect:
        solver = ctx.require_dual_solver()

        if not self.initialized:
            self.saved_limit = solver.get_solution_limit()
            self._set_limit(ctx, self.strategy.initial_limit(ctx), reason="initial")
            self.initialized = True
            return CONTINUE

        if self.temporary_limit_active:
            self._set_limit(ctx, self.saved_limit, reason="restore")
            self.temporary_limit_active = False

        if self._force_optimal_due(ctx):
            self.saved_limit = solver.get_solution_limit()
            self._set_limit(ctx, SOLUTION_LIMIT_UNBOUNDED, reason="force_optimal")
            self.temporary_limit_active = True
            return CONTINUE

        if self.strategy.update_limit(ctx):
            self._set_limit(ctx, self.strategy.new_limit(ctx), reason="strategy")

        return CONTINUE
