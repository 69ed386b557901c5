# src/cutflow/strategies/cutting_plane.py
"""
Montagem das variantes do algoritmo de planos de corte.

Cada builder registra o vocabulário de Tasks em ordem de execução
padrão, fazendo a fiação por nome:

    - todos os checks de término saltam para "FinalizeSolution"
    - "Goto" fecha o laço saltando para "SolveIter"
    - a mesma `InitializeIterationTask` ocupa "InitIter" e "InitIter2"
    - a mesma `AddHyperplanesTask` é registrada duas vezes como "AddHPs"
      (o salto para "AddHPs", se existisse, iria para a primeira)
    - "FinalizeSolution" é uma `SequentialTask` registrada perto do fim
      mas referenciada desde os primeiros checks, e ganha filhos
      enquanto o schedule é montado
    - "AddObjectiveCutFinal" fica entre a finalização e "Terminate" como
      entrada própria: seu salto para "InitIter2" reabre o laço com um
      cutoff de objetivo (desligado com `strategy.assume_convex` ou
      `termination.max_primal_reduction_cuts: 0`)

Estratégia de cortes (`dual.cut_strategy`):
    - ecp: "SelectHPPts" lineariza nos pontos da relaxação
    - esh: "FindIntPoint" antes da primeira iteração, "UpdateInteriorPoint"
      antes de "SelectHPPts" (ESH) e, com `primal.linesearch.enabled`,
      "SelectPrimLinesearch" depois do pool primal

Variantes:
    - nlp: relaxação contínua (LP), seleção de primais pelo pool da iteração
    - mip: relaxação discreta (MIP), com limite adaptativo de soluções
      ("ExecSolLimit"/"ExecSolLimit2") e, havendo solver primal, o
      subproblema com inteiros fixos seguido de um novo teste de gap

`solve(ctx)` escolhe a variante (`strategy.variant`, ou `auto` pelo
`problem.is_discrete`), cria o Manifest quando ausente e executa.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from cutflow import __version__
from cutflow.core.config.hashing import compute_config_hash
from cutflow.core.engine.engine import Engine, RunResult
from cutflow.core.engine.scheduler import Scheduler
from cutflow.core.exceptions import EngineConfigurationError
from cutflow.core.pipeline.context import SessionContext
from cutflow.core.traceability.manifest import create_manifest
from cutflow.tasks.checks import (
    CheckAbsoluteGapTask,
    CheckConstraintToleranceTask,
    CheckDualStagnationTask,
    CheckIterationErrorTask,
    CheckIterationLimitTask,
    CheckMaxPrimalReductionCutsTask,
    CheckPrimalStagnationTask,
    CheckRelativeGapTask,
    CheckTimeLimitTask,
    CheckUserTerminationTask,
)
from cutflow.tasks.control import GotoTask, TerminateTask
from cutflow.tasks.hyperplanes import (
    AddHyperplanesTask,
    AddPrimalReductionCutTask,
    SelectHyperplanePointsECPTask,
    SelectHyperplanePointsESHTask,
)
from cutflow.tasks.interior_point import FindInteriorPointTask, UpdateInteriorPointTask
from cutflow.tasks.iteration import InitializeIterationTask, PrintIterationReportTask, SolveIterationTask
from cutflow.tasks.primal import (
    SelectPrimalCandidatesFromLinesearchTask,
    SelectPrimalCandidatesFromNLPTask,
    SelectPrimalCandidatesFromSolutionPoolTask,
)
from cutflow.tasks.sequential import SequentialTask
from cutflow.tasks.solution_limit import ExecuteSolutionLimitTask, solution_limit_strategy_from_settings


FINALIZE = "FinalizeSolution"
FINAL_REDUCTION_CUT = "AddObjectiveCutFinal"

CUT_STRATEGIES = ("ecp", "esh")


def resolve_cut_strategy(ctx: SessionContext) -> str:
    chosen = ctx.setting("dual.cut_strategy")
    if chosen not in CUT_STRATEGIES:
        raise EngineConfigurationError(
            message=f"Unknown cut strategy: {chosen!r}",
            details={"setting": "dual.cut_strategy", "value": chosen, "allowed": list(CUT_STRATEGIES)},
            hint="Use ecp ou esh",
        )
    return chosen


def _final_reduction_cut_enabled(ctx: SessionContext) -> bool:
    if bool(ctx.setting("strategy.assume_convex")):
        return False
    return int(ctx.setting("termination.max_primal_reduction_cuts")) > 0


def _register_interior_point_search(scheduler: Scheduler, cut_strategy: str) -> None:
    if cut_strategy == "esh":
        scheduler.register("FindIntPoint", FindInteriorPointTask())


def _register_primal_linesearch(
    scheduler: Scheduler,
    ctx: SessionContext,
    cut_strategy: str,
    finalize: SequentialTask,
) -> None:
    if cut_strategy == "esh" and bool(ctx.setting("primal.linesearch.enabled")):
        select_linesearch = SelectPrimalCandidatesFromLinesearchTask()
        scheduler.register("SelectPrimLinesearch", select_linesearch)
        finalize.add_task(select_linesearch)


def _register_hyperplane_selection(scheduler: Scheduler, cut_strategy: str) -> None:
    if cut_strategy == "esh":
        scheduler.register("UpdateInteriorPoint", UpdateInteriorPointTask())
        scheduler.register("SelectHPPts", SelectHyperplanePointsESHTask())
    else:
        scheduler.register("SelectHPPts", SelectHyperplanePointsECPTask())


def _register_finalization(scheduler: Scheduler, ctx: SessionContext, finalize: SequentialTask) -> None:
    scheduler.register(FINALIZE, finalize)
    if _final_reduction_cut_enabled(ctx):
        scheduler.register(FINAL_REDUCTION_CUT, AddPrimalReductionCutTask("InitIter2", "Terminate"))
    scheduler.register("Terminate", TerminateTask())


def build_nlp_strategy(scheduler: Scheduler, ctx: SessionContext) -> Scheduler:
    cut_strategy = resolve_cut_strategy(ctx)
    finalize = SequentialTask()

    _register_interior_point_search(scheduler, cut_strategy)

    init_iter = InitializeIterationTask()
    scheduler.register("InitIter", init_iter)

    add_hps = AddHyperplanesTask()
    scheduler.register("AddHPs", add_hps)

    scheduler.register("SolveIter", SolveIterationTask())

    select_pool = SelectPrimalCandidatesFromSolutionPoolTask()
    scheduler.register("SelectPrimSolPool", select_pool)
    finalize.add_task(select_pool)

    _register_primal_linesearch(scheduler, ctx, cut_strategy, finalize)

    scheduler.register("PrintIterReport", PrintIterationReportTask())

    scheduler.register("CheckAbsGap", CheckAbsoluteGapTask(FINALIZE))
    scheduler.register("CheckRelGap", CheckRelativeGapTask(FINALIZE))
    scheduler.register("CheckIterLim", CheckIterationLimitTask(FINALIZE))
    scheduler.register("CheckTimeLim", CheckTimeLimitTask(FINALIZE))
    scheduler.register("CheckUserTermination", CheckUserTerminationTask(FINALIZE))
    scheduler.register("CheckIterError", CheckIterationErrorTask(FINALIZE))
    scheduler.register("CheckConstrTol", CheckConstraintToleranceTask(FINALIZE))

    scheduler.register("CheckPrimalStag", CheckPrimalStagnationTask("AddObjectiveCut", "CheckDualStag"))
    scheduler.register("AddObjectiveCut", AddPrimalReductionCutTask("CheckDualStag", "CheckDualStag"))
    scheduler.register("CheckDualStag", CheckDualStagnationTask(FINALIZE))

    scheduler.register("InitIter2", init_iter)
    _register_hyperplane_selection(scheduler, cut_strategy)
    scheduler.register("AddHPs", add_hps)

    scheduler.register("Goto", GotoTask("SolveIter"))

    _register_finalization(scheduler, ctx, finalize)
    return scheduler


def build_mip_strategy(scheduler: Scheduler, ctx: SessionContext) -> Scheduler:
    cut_strategy = resolve_cut_strategy(ctx)
    finalize = SequentialTask()

    _register_interior_point_search(scheduler, cut_strategy)

    init_iter = InitializeIterationTask()
    scheduler.register("InitIter", init_iter)

    add_hps = AddHyperplanesTask()
    scheduler.register("AddHPs", add_hps)

    exec_sol_limit = ExecuteSolutionLimitTask(solution_limit_strategy_from_settings(ctx))
    scheduler.register("ExecSolLimit", exec_sol_limit)

    scheduler.register("SolveIter", SolveIterationTask())

    select_pool = SelectPrimalCandidatesFromSolutionPoolTask()
    scheduler.register("SelectPrimSolPool", select_pool)
    finalize.add_task(select_pool)

    _register_primal_linesearch(scheduler, ctx, cut_strategy, finalize)

    scheduler.register("PrintIterReport", PrintIterationReportTask())

    check_abs_gap = CheckAbsoluteGapTask(FINALIZE)
    check_rel_gap = CheckRelativeGapTask(FINALIZE)
    scheduler.register("CheckAbsGap", check_abs_gap)
    scheduler.register("CheckRelGap", check_rel_gap)
    scheduler.register("CheckIterLim", CheckIterationLimitTask(FINALIZE))
    scheduler.register("CheckTimeLim", CheckTimeLimitTask(FINALIZE))
    scheduler.register("CheckUserTermination", CheckUserTerminationTask(FINALIZE))
    scheduler.register("CheckConstrTol", CheckConstraintToleranceTask(FINALIZE))
    scheduler.register("CheckIterError", CheckIterationErrorTask(FINALIZE))
    scheduler.register("CheckMaxObjectiveCuts", CheckMaxPrimalReductionCutsTask(FINALIZE))

    scheduler.register("CheckPrimalStag", CheckPrimalStagnationTask("AddObjectiveCut", "CheckDualStag"))
    scheduler.register("AddObjectiveCut", AddPrimalReductionCutTask("CheckDualStag", "CheckDualStag"))
    scheduler.register("CheckDualStag", CheckDualStagnationTask(FINALIZE))

    if ctx.primal_solver is not None and bool(ctx.setting("primal.fixed_integer.enabled")):
        select_nlp = SelectPrimalCandidatesFromNLPTask()
        scheduler.register("SelectPrimNLPCheck", select_nlp)
        finalize.add_task(select_nlp)

        scheduler.register("CheckAbsGap", check_abs_gap)
        scheduler.register("CheckRelGap", check_rel_gap)

    scheduler.register("InitIter2", init_iter)
    _register_hyperplane_selection(scheduler, cut_strategy)
    scheduler.register("AddHPs", add_hps)
    scheduler.register("ExecSolLimit2", exec_sol_limit)

    scheduler.register("Goto", GotoTask("SolveIter"))

    _register_finalization(scheduler, ctx, finalize)
    return scheduler


STRATEGY_BUILDERS: Dict[str, Callable[[Scheduler, SessionContext], Scheduler]] = {
    "nlp": build_nlp_strategy,
    "mip": build_mip_strategy,
}


def resolve_variant(ctx: SessionContext, variant: Optional[str] = None) -> str:
    chosen = variant or ctx.setting("strategy.variant")
    if chosen == "auto":
        chosen = "mip" if ctx.require_problem().is_discrete else "nlp"
    if chosen not in STRATEGY_BUILDERS:
        raise EngineConfigurationError(
            message=f"Unknown strategy variant: {chosen!r}",
            details={"setting": "strategy.variant", "value": chosen, "allowed": sorted(STRATEGY_BUILDERS)},
            hint="Use auto, nlp ou mip",
        )
    return chosen


def build_strategy(ctx: SessionContext, variant: Optional[str] = None) -> Scheduler:
    chosen = resolve_variant(ctx, variant)
    return STRATEGY_BUILDERS[chosen](Scheduler(), ctx)


def solve(ctx: SessionContext, *, variant: Optional[str] = None) -> RunResult:
    chosen = resolve_variant(ctx, variant)

    if ctx.manifest is None:
        ctx.manifest = create_manifest(
            run_id=ctx.run_id,
            started_at=ctx.created_at,
            cutflow_version=__version__,
            config_hash=compute_config_hash(ctx.config or {}),
            strategy=chosen,
            max_events=ctx.setting("engine.max_manifest_events"),
        )

    scheduler = STRATEGY_BUILDERS[chosen](Scheduler(), ctx)
    ctx.log(
        task="strategy",
        level="info",
        message="strategy assembled",
        variant=chosen,
        cut_strategy=resolve_cut_strategy(ctx),
        entries=len(scheduler.registry),
    )
    return Engine(scheduler=scheduler, ctx=ctx).run()
