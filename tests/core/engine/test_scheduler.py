# tests/core/engine/test_scheduler.py
"""
Testes do Scheduler (registry + cursor + flag de parada).

Este módulo valida, sem o loop do Engine, que:
- `next_task()` percorre as entradas em ordem e depois reporta fim (None)
- `next_task()` não aplica redirects
- `resolve` devolve a primeira posição e falha para nomes desconhecidos
- `jump_to` reposiciona o cursor dentro de 0..len
- `halt` encerra a iteração
- um Scheduler conduz uma única run
- a validação pós-montagem lista alvos ausentes

Limites explícitos:
    - Não executa Tasks
"""

import pytest

try:
    from cutflow.core.engine.scheduler import Scheduler, SchedulerReuseError, UnresolvedTarget
    from cutflow.core.pipeline.registry import TaskNameNotFoundError
    from cutflow.tasks.control import ConditionalTask, GotoTask
    from cutflow.tasks.sequential import SequentialTask
except Exception as e:  # noqa: BLE001
    Scheduler = SchedulerReuseError = UnresolvedTarget = None
    TaskNameNotFoundError = None
    ConditionalTask = GotoTask = SequentialTask = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o Scheduler e suas dependências estejam disponíveis.

    Limites explícitos:
        - Não valida comportamento do Scheduler
    """
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing Scheduler. Implement:
- src/cutflow/core/engine/scheduler.py (Scheduler, SchedulerReuseError)
Import error: {_IMPORT_ERR}
""")


def test_fallthrough_visits_each_entry_once_then_exhausts(DummyTask):
    """
    Um schedule só de fallthrough visita cada entrada exatamente uma vez.

    Invariantes:
        - A ordem de visita é a ordem de registro
        - Depois da última entrada, `next_task()` devolve None
        - Chamadas repetidas após o fim continuam devolvendo None
    """
    _require_imports()
    sched = Scheduler()
    tasks = [DummyTask(n) for n in ("A", "B", "C")]
    for t in tasks:
        sched.register(t.label, t)

    visited = []
    while True:
        task = sched.next_task()
        if task is None:
            break
        visited.append(task)

    assert visited == tasks
    assert sched.next_task() is None
    assert sched.cursor == 3


def test_next_task_records_last_entry(DummyTask):
    _require_imports()
    sched = Scheduler()
    shared = DummyTask("Init")
    sched.register("InitIter", shared)
    sched.register("InitIter2", shared)

    sched.next_task()
    assert sched.last_entry.name == "InitIter"
    sched.next_task()
    assert sched.last_entry.name == "InitIter2"
    assert sched.last_entry.task is shared


def test_resolve_returns_first_position(DummyTask):
    _require_imports()
    sched = Scheduler()
    sched.register("AddHPs", DummyTask("first"))
    sched.register("Solve", DummyTask("Solve"))
    sched.register("AddHPs", DummyTask("second"))

    assert sched.resolve("AddHPs") == 0


def test_resolve_unknown_name_fails():
    """Um nome nunca registrado falha com NameNotFound em vez de seguir adiante."""
    _require_imports()
    sched = Scheduler()
    with pytest.raises(TaskNameNotFoundError):
        sched.resolve("Finalize")


def test_jump_to_repositions_cursor(DummyTask):
    _require_imports()
    sched = Scheduler()
    a, b = DummyTask("A"), DummyTask("B")
    sched.register("A", a)
    sched.register("B", b)

    sched.next_task()
    sched.next_task()
    sched.jump_to(sched.resolve("A"))

    assert sched.cursor == 0
    assert sched.next_task() is a


@pytest.mark.parametrize("position", [-1, 3])
def test_jump_to_out_of_range_is_rejected(DummyTask, position):
    _require_imports()
    sched = Scheduler()
    sched.register("A", DummyTask("A"))
    sched.register("B", DummyTask("B"))
    with pytest.raises(ValueError):
        sched.jump_to(position)


def test_jump_to_end_is_allowed(DummyTask):
    _require_imports()
    sched = Scheduler()
    sched.register("A", DummyTask("A"))
    sched.jump_to(1)
    assert sched.next_task() is None


def test_halt_stops_iteration(DummyTask):
    _require_imports()
    sched = Scheduler()
    sched.register("A", DummyTask("A"))
    sched.register("B", DummyTask("B"))

    sched.next_task()
    sched.halt()

    assert sched.halted
    assert sched.next_task() is None


def test_scheduler_drives_a_single_run():
    _require_imports()
    sched = Scheduler()
    sched.begin()
    assert sched.started
    with pytest.raises(SchedulerReuseError):
        sched.begin()


def test_unresolved_jump_targets_lists_missing_names(DummyTask):
    """
    A validação pós-montagem lista alvos declarados e não registrados.

    Decisões arquiteturais:
        - Referências adiante registradas até o fim da montagem são válidas
        - Filhos de compostos não são inspecionados
    """
    _require_imports()
    sched = Scheduler()
    finalize = SequentialTask()
    finalize.add_task(GotoTask("NeverRegistered"))

    sched.register("Check", ConditionalTask(lambda ctx: False, "Finalize"))
    sched.register("Loop", GotoTask("Solve"))
    sched.register("Finalize", finalize)

    assert sched.unresolved_jump_targets() == [UnresolvedTarget("Loop", "GotoTask", "Solve")]

    sched.register("Solve", DummyTask("Solve"))
    assert sched.unresolved_jump_targets() == []
