# tests/conftest.py
"""
Fixtures compartilhados para testes do CutFlow.

Este módulo define fixtures reutilizáveis que fornecem:
- settings mínimos e determinísticos
- SessionContext controlado (run_id, created_at e relógio fixos)
- Tasks dummy para testes estruturais de Scheduler e Engine
- colaboradores falsos (problema escalar, solver dual de planos de
  corte, solver primal, busca de ponto interior) para testes das Tasks
  e das estratégias

O objetivo destas fixtures é permitir testes do core (config, pipeline,
engine e traceability) e do vocabulário de Tasks sem depender de:
- solvers LP/MIP/NLP reais
- relógio de parede
- filesystem

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Fixtures de Task e de solvers retornam *classes*, instanciadas
      pelos testes com os parâmetros de cada cenário
    - Imports do core são realizados de forma lazy para melhorar a
      clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture executa uma run
    - Nenhuma fixture realiza I/O
    - Os colaboradores falsos são determinísticos

Limites explícitos:
    - Não substituir testes de integração com solvers reais
    - Não validar semântica completa de settings
"""

import math
from datetime import datetime, timezone

import numpy as np
import pytest


# =====================================================
# Settings fixtures
# =====================================================

@pytest.fixture
def settings_base_yaml() -> str:
    """
    YAML de settings base semelhante ao de um projeto real.

    Representa o conteúdo típico de um `cutflow.yaml` versionado: ajusta
    tolerâncias e limites sem repetir todos os defaults embutidos.

    Observação:
        PyYAML lê `1e-3` (sem ponto) como string; os números usam a
        forma decimal para manter o tipo float.

    Returns:
        str: Conteúdo YAML representando os settings base.
    """
    return """\
engine:
  validate_targets: true
termination:
  absolute_gap: 0.001
  iteration_limit: 50
dual:
  solution_limit:
    strategy: increase
"""


@pytest.fixture
def settings_local_yaml() -> str:
    """
    YAML de overrides locais (ex.: `cutflow.local.yaml` fora do controle de versão).

    Returns:
        str: Conteúdo YAML com apenas as chaves sobrescritas.
    """
    return """\
termination:
  iteration_limit: 10
  time_limit: 60
engine:
  trace_tasks: false
"""


@pytest.fixture
def dummy_config() -> dict:
    """
    Settings mínimos e válidos para testes do engine.

    Decisões arquiteturais:
        - Settings são representados como dicionário já resolvido
        - Apenas a seção `engine` é explicitada; as demais chaves caem
          nos defaults embutidos via `SessionContext.setting`

    Returns:
        dict: Settings mínimos para execução de testes.
    """
    return {
        "engine": {"validate_targets": True, "trace_tasks": True},
    }


# =====================================================
# Context fixtures
# =====================================================

class FakeClock:
    """Relógio manual: devolve `now` e só avança quando o teste manda."""

    def __init__(self, start: float = 0.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += float(seconds)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_ctx(dummy_config, fake_clock):
    """
    Fixture factory que cria SessionContexts determinísticos.

    Permite que cada teste injete seus próprios settings e colaboradores
    mantendo `run_id`, `created_at` e relógio fixos.

    Returns:
        Callable[..., SessionContext]
    """
    from cutflow.core.pipeline.context import SessionContext

    def _make(config=None, **kwargs):
        kwargs.setdefault("clock", fake_clock)
        return SessionContext(
            run_id="run-test-001",
            created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
            config=dummy_config if config is None else config,
            meta={"source": "pytest"},
            **kwargs,
        )

    return _make


@pytest.fixture
def dummy_ctx(make_ctx):
    """
    SessionContext determinístico e sem colaboradores externos.

    Invariantes:
        - O contexto não depende de estado global
        - O timestamp é timezone-aware (UTC)
        - O relógio é o `fake_clock` do teste

    Returns:
        SessionContext: Contexto isolado e previsível.
    """
    return make_ctx()


# =====================================================
# Task fixtures
# =====================================================

@pytest.fixture
def DummyTask():
    """
    Fixture factory que fornece uma Task mínima e duck-typed.

    A classe retornada:
    - expõe `kind`, `type_name()` e `run(ctx)`
    - conta as próprias execuções em `calls`
    - anexa seu rótulo à lista `ctx.get_artifact("visits")`
    - devolve o redirect calculado por `action(ctx, task)` ou `CONTINUE`

    Decisões arquiteturais:
        - Não herda de `Task`: a conformidade é por duck typing
        - O comportamento de controle fica todo no callable `action`

    Returns:
        type: Classe _DummyTask instanciável pelos testes.
    """
    from cutflow.core.pipeline.types import CONTINUE, TaskKind

    class _DummyTask:
        kind = TaskKind.CONTROL

        def __init__(self, label: str = "Dummy", action=None, targets=()):
            self.label = label
            self.action = action
            self.targets = tuple(targets)
            self.calls = 0

        def type_name(self) -> str:
            return self.label

        def jump_targets(self):
            return self.targets

        def run(self, ctx):
            self.calls += 1
            if not ctx.has_artifact("visits"):
                ctx.set_artifact("visits", [])
            ctx.get_artifact("visits").append(self.label)
            if self.action is None:
                return CONTINUE
            return self.action(ctx, self)

    return _DummyTask


# =====================================================
# Fake collaborators (ports)
# =====================================================

class ScalarProblem:
    """
    min x  s.a.  x² - r² <= 0   (uma variável, uma restrição convexa).

    O ótimo é `x* = -r`. Com `is_discrete=True` a variável é tratada
    como inteira pelas estratégias (o solver dual arredonda).
    """

    def __init__(self, *, radius: float = 2.0, is_discrete: bool = False):
        self.radius = float(radius)
        self.is_discrete = is_discrete

    def objective_value(self, point):
        return float(point[0])

    def constraint_values(self, point):
        return np.array([float(point[0]) ** 2 - self.radius ** 2])

    def constraint_gradient(self, index, point):
        return np.array([2.0 * float(point[0])])


class ScalarCutSolver:
    """
    Relaxação 1-D `min x` em `[lower, upper]` refinada por cortes `a·x <= b`.

    Cada corte com `a < 0` eleva o limite inferior para `b / a`; com
    `a > 0` reduz o superior. Um cutoff de objetivo também reduz o
    superior. Com `integer=True` o ótimo é arredondado para o menor
    inteiro viável. O ótimo da relaxação é o próprio bound dual.
    """

    def __init__(self, *, lower: float = -10.0, upper: float = 10.0, integer: bool = False):
        from cutflow.core.pipeline.types import SolutionStatus

        self._status = SolutionStatus
        self.lower = float(lower)
        self.upper = float(upper)
        self.integer = integer
        self.hyperplanes = []
        self.solution_limit = 1
        self.limit_history = []
        self.cutoff = None
        self.solve_calls = 0

    def add_hyperplane(self, hyperplane):
        self.hyperplanes.append(hyperplane)

    def get_solution_limit(self):
        return self.solution_limit

    def set_solution_limit(self, limit):
        self.solution_limit = limit
        self.limit_history.append(limit)

    def set_cutoff(self, value):
        self.cutoff = value

    def solve(self):
        from cutflow.core.pipeline.ports import DualSolution

        self.solve_calls += 1
        lo, hi = self.lower, self.upper
        for h in self.hyperplanes:
            a = float(h.coefficients[0])
            if a < 0:
                lo = max(lo, h.rhs / a)
            elif a > 0:
                hi = min(hi, h.rhs / a)

        if self.cutoff is not None:
            hi = min(hi, self.cutoff)

        if self.integer:
            lo = float(math.ceil(lo - 1e-9))
            hi = float(math.floor(hi + 1e-9))

        if lo > hi:
            return DualSolution(status=self._status.INFEASIBLE)

        return DualSolution(
            status=self._status.OPTIMAL,
            objective_value=lo,
            dual_bound=lo,
            points=[np.array([lo])],
        )


class EchoPrimalSolver:
    """Subproblema com inteiros fixos trivial: devolve o próprio ponto."""

    def __init__(self):
        self.calls = 0

    def solve_fixed_integer(self, point):
        self.calls += 1
        return np.array(point, dtype=float)


class FixedInteriorPointSolver:
    """Busca de ponto interior que sempre devolve o mesmo ponto (ou falha)."""

    def __init__(self, point=(0.0,), *, error=None):
        self.point = None if point is None else np.asarray(point, dtype=float)
        self.error = error
        self.calls = 0

    def find_interior_point(self, problem):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.point


@pytest.fixture
def scalar_problem_cls():
    return ScalarProblem


@pytest.fixture
def scalar_solver_cls():
    return ScalarCutSolver


@pytest.fixture
def echo_primal_cls():
    return EchoPrimalSolver


@pytest.fixture
def interior_solver_cls():
    return FixedInteriorPointSolver
