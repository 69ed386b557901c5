# tests/e2e/test_cutting_plane_nlp_e2e.py
"""
Teste end-to-end da variante contínua (nlp) do algoritmo de planos de corte.

Cenário:
    min x  s.a.  x² - 4 <= 0,  x ∈ [-10, 10]

O solver dual falso resolve a relaxação 1-D exatamente; cada iteração
ECP corta o ponto anterior (sequência de Newton -10, -5.2, -2.98, ...)
até o ponto da relaxação ficar viável dentro de
`primal.feasibility_tolerance`. Nesse momento o pool primal aceita o
ponto, o gap absoluto zera e a run segue para a finalização.

Objetivos:
    - Garantir que `solve(ctx)` monta, valida e executa o schedule
    - Validar motivo de término, bounds e trace
    - Validar que o Manifest registra a run de ponta a ponta
    - Validar a saída por iteração, abort e erro do subproblema

Este teste NÃO depende de solvers reais nem de relógio de parede.
"""

import pytest

try:
    from cutflow.core.config.hashing import compute_config_hash
    from cutflow.strategies.cutting_plane import solve
except Exception as e:  # noqa: BLE001
    compute_config_hash = None
    solve = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing strategy entry point. Implement:
- src/cutflow/strategies/cutting_plane.py (solve)
Import error: {_IMPORT_ERR}
""")


@pytest.fixture
def nlp_ctx(make_ctx, scalar_problem_cls, scalar_solver_cls):
    def _make(config=None, **solver_kwargs):
        return make_ctx(
            config,
            problem=scalar_problem_cls(radius=2.0),
            dual_solver=scalar_solver_cls(**solver_kwargs),
        )

    return _make


def test_nlp_converges_by_absolute_gap(nlp_ctx):
    """
    A run converge para `x* = -2` e termina pelo gap absoluto.

    Invariantes:
        - O trace termina em FinalizeSolution → AddObjectiveCutFinal → Terminate
        - "InitIter" é visitado uma vez; "InitIter2" uma vez por volta do laço
        - Com o gap fechado, o corte de redução final não é aplicado
    """
    _require_imports()
    ctx = nlp_ctx()

    result = solve(ctx)

    assert result.halted
    assert result.termination_reason == "absolute_gap"
    assert result.trace[:3] == ("InitIter", "AddHPs", "SolveIter")
    assert result.trace[-3:] == ("FinalizeSolution", "AddObjectiveCutFinal", "Terminate")

    assert ctx.primal_bound == pytest.approx(-2.0, abs=1e-6)
    assert ctx.dual_bound == pytest.approx(-2.0, abs=1e-6)
    assert ctx.absolute_gap() <= 1e-3
    assert 3 <= ctx.iteration_number <= 20
    assert ctx.cuts_added == ctx.iteration_number - 1

    assert result.trace.count("Goto") == ctx.iteration_number - 1
    assert ctx.primal_reduction_cuts == 0
    assert ctx.dual_solver.cutoff is None
    assert "engine" not in ctx.warnings


def test_nlp_manifest_is_created_and_complete(nlp_ctx):
    _require_imports()
    ctx = nlp_ctx()

    result = solve(ctx)
    manifest = ctx.manifest

    assert manifest is not None
    assert manifest.inputs["strategy"] == "nlp"
    assert manifest.inputs["config_hash"] == compute_config_hash(ctx.config)
    assert manifest.event_types()[0] == "run_started"
    assert manifest.event_types()[-1] == "run_finished"
    assert manifest.events[-1]["payload"]["termination_reason"] == "absolute_gap"
    assert manifest.events[-1]["payload"]["steps"] == result.steps

    assert manifest.tasks["InitIter"]["visits"] == 1
    assert manifest.tasks["InitIter2"]["visits"] == ctx.iteration_number - 1
    assert manifest.tasks["Terminate"]["last_redirect"] == {"kind": "halt", "target": None}


def test_nlp_stops_at_iteration_limit(nlp_ctx):
    """
    Com limite de 3 iterações a run termina antes de achar solução primal.

    A finalização ainda executa; sem incumbente, o corte de redução
    não é aplicado.
    """
    _require_imports()
    ctx = nlp_ctx({"termination": {"iteration_limit": 3}})

    result = solve(ctx)

    assert result.termination_reason == "iteration_limit"
    assert ctx.iteration_number == 3
    assert ctx.primal_solutions == []
    assert ctx.primal_reduction_cuts == 0
    assert result.trace[-3:] == ("FinalizeSolution", "AddObjectiveCutFinal", "Terminate")


def test_nlp_user_abort_stops_first_iteration(nlp_ctx):
    _require_imports()
    ctx = nlp_ctx()
    ctx.request_abort()

    result = solve(ctx)

    assert result.termination_reason == "user_abort"
    assert ctx.iteration_number == 1


def test_nlp_infeasible_relaxation_is_reported(nlp_ctx):
    """Relaxação inviável logo na primeira iteração: o check de erro encerra a run."""
    _require_imports()
    ctx = nlp_ctx(lower=5.0, upper=4.0)

    result = solve(ctx)

    assert result.termination_reason == "infeasible"
    assert result.halted
    assert ctx.iteration_number == 1


def test_final_reduction_cut_reopens_the_loop(nlp_ctx):
    """
    Com os testes de gap desligados, a run para por `constraint_tolerance`.
    O corte de redução final impõe um cutoff e salta para "InitIter2"; a
    relaxação seguinte é inviável e a run termina por `cutoff_infeasible`.

    Invariantes:
        - Depois da primeira finalização o laço é reaberto em "InitIter2"
        - A segunda passagem pelo corte final segue para "Terminate"
        - O cutoff fica `factor * max(1, |primal|)` abaixo do incumbente
    """
    _require_imports()
    ctx = nlp_ctx({"termination": {"absolute_gap": -1.0, "relative_gap": -1.0}})

    result = solve(ctx)

    first = result.trace.index("FinalizeSolution")
    assert result.trace[first + 1:first + 3] == ("AddObjectiveCutFinal", "InitIter2")
    assert result.trace.count("FinalizeSolution") == 2
    assert result.trace.count("AddObjectiveCutFinal") == 2
    assert result.trace[-3:] == ("FinalizeSolution", "AddObjectiveCutFinal", "Terminate")

    assert result.halted
    assert result.termination_reason == "cutoff_infeasible"
    assert ctx.primal_reduction_cuts == 1
    assert ctx.iterations[-1].status.value == "infeasible"
    assert ctx.iterations[-2].max_constraint_violation <= 1e-8
    assert ctx.dual_solver.cutoff == pytest.approx(ctx.primal_bound - 1e-3 * abs(ctx.primal_bound))
    assert ctx.objective_cutoff == ctx.dual_solver.cutoff
    assert any(e["message"] == "run resumed" and e["discarded_reason"] == "constraint_tolerance" for e in ctx.events)


def test_assume_convex_skips_final_reduction_cut(nlp_ctx):
    _require_imports()
    ctx = nlp_ctx({"strategy": {"assume_convex": True}})

    result = solve(ctx)

    assert "AddObjectiveCutFinal" not in result.trace
    assert result.trace[-2:] == ("FinalizeSolution", "Terminate")


def test_esh_converges_with_interior_point(make_ctx, scalar_problem_cls, scalar_solver_cls, interior_solver_cls):
    """
    ESH a partir do ponto interior `x = 0`.

    Na primeira iteração o linesearch primal acha a fronteira (`x ≈ -2`)
    entre o ponto interior e o ótimo da relaxação; o hiperplano de suporte
    gerado ali fecha o gap já na segunda iteração.
    """
    _require_imports()
    ctx = make_ctx(
        {"dual": {"cut_strategy": "esh"}},
        problem=scalar_problem_cls(radius=2.0),
        dual_solver=scalar_solver_cls(),
        interior_point_solver=interior_solver_cls((0.0,)),
    )

    result = solve(ctx)

    assert result.trace[:2] == ("FindIntPoint", "InitIter")
    assert result.termination_reason == "absolute_gap"
    assert ctx.iteration_number == 2
    assert ctx.primal_solutions[0].source == "linesearch"
    assert ctx.primal_solutions[0].iteration == 1
    assert ctx.primal_bound == pytest.approx(-2.0, abs=1e-6)
    assert ctx.dual_bound == pytest.approx(-2.0, abs=1e-6)

    assert [h.source for h in ctx.dual_solver.hyperplanes] == ["esh"]
    assert ctx.interior_point[0] == pytest.approx(-1.0, abs=1e-6)


def test_esh_without_interior_point_falls_back_to_ecp(nlp_ctx):
    _require_imports()
    ecp_ctx = nlp_ctx()
    solve(ecp_ctx)

    ctx = nlp_ctx({"dual": {"cut_strategy": "esh"}})
    result = solve(ctx)

    assert result.termination_reason == "absolute_gap"
    assert ctx.interior_point is None
    assert "FindInteriorPointTask" in ctx.warnings
    assert ctx.iteration_number == ecp_ctx.iteration_number
    assert {h.source for h in ctx.dual_solver.hyperplanes} == {"ecp"}
