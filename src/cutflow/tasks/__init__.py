# src/cutflow/tasks/__init__.py
"""
Vocabulário de Tasks do CutFlow.

- control        → GotoTask, ConditionalTask, TerminateTask
- sequential     → SequentialTask (composto; descarta redirects dos filhos)
- checks         → checks de término e estagnação
- iteration      → abertura, solução e relatório de iterações
- hyperplanes    → seleção (ECP, ESH) e adição de hiperplanos, cortes de redução primal
- interior_point → ponto interior, sua atualização e root search em segmentos
- primal         → busca de soluções primais (pool, subproblema NLP, linesearch)
- solution_limit → limite adaptativo de soluções do solver dual
"""

from .checks import (
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
    TerminationCheck,
)
from .control import ConditionalTask, GotoTask, TerminateTask
from .hyperplanes import (
    AddHyperplanesTask,
    AddPrimalReductionCutTask,
    SelectHyperplanePointsECPTask,
    SelectHyperplanePointsESHTask,
)
from .interior_point import FindInteriorPointTask, SegmentRoot, UpdateInteriorPointTask, root_search
from .iteration import InitializeIterationTask, PrintIterationReportTask, SolveIterationTask
from .primal import (
    SelectPrimalCandidatesFromLinesearchTask,
    SelectPrimalCandidatesFromNLPTask,
    SelectPrimalCandidatesFromSolutionPoolTask,
)
from .sequential import SequentialTask
from .solution_limit import (
    SOLUTION_LIMIT_UNBOUNDED,
    AdaptiveSolutionLimit,
    ExecuteSolutionLimitTask,
    IncreaseSolutionLimit,
    SolutionLimitStrategy,
    UnlimitedSolutionLimit,
    solution_limit_strategy_from_settings,
)

__all__ = [
    "AddHyperplanesTask",
    "AddPrimalReductionCutTask",
    "AdaptiveSolutionLimit",
    "CheckAbsoluteGapTask",
    "CheckConstraintToleranceTask",
    "CheckDualStagnationTask",
    "CheckIterationErrorTask",
    "CheckIterationLimitTask",
    "CheckMaxPrimalReductionCutsTask",
    "CheckPrimalStagnationTask",
    "CheckRelativeGapTask",
    "CheckTimeLimitTask",
    "CheckUserTerminationTask",
    "ConditionalTask",
    "ExecuteSolutionLimitTask",
    "FindInteriorPointTask",
    "GotoTask",
    "IncreaseSolutionLimit",
    "InitializeIterationTask",
    "PrintIterationReportTask",
    "SOLUTION_LIMIT_UNBOUNDED",
    "SegmentRoot",
    "SelectHyperplanePointsECPTask",
    "SelectHyperplanePointsESHTask",
    "SelectPrimalCandidatesFromLinesearchTask",
    "SelectPrimalCandidatesFromNLPTask",
    "SelectPrimalCandidatesFromSolutionPoolTask",
    "SequentialTask",
    "SolutionLimitStrategy",
    "SolveIterationTask",
    "TerminateTask",
    "TerminationCheck",
    "UnlimitedSolutionLimit",
    "UpdateInteriorPointTask",
    "root_search",
    "solution_limit_strategy_from_settings",
]
