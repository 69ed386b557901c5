# src/cutflow/core/engine/scheduler.py
"""
Scheduler de Tasks nomeadas: registry + cursor + flag de parada.

O Scheduler é o dono do estado de controle de uma run:
    - o `TaskRegistry` montado pela estratégia
    - um cursor apontando para a próxima entrada a executar
    - uma flag de parada ligada pela Task terminal

Semântica:
    - `next_task()` devolve a Task no cursor e avança uma posição,
      ou `None` (Exhausted) se a run parou ou o cursor passou do fim
    - `next_task()` não aplica redirects; isso cabe ao loop do Engine
    - `resolve(name)` devolve a primeira posição registrada sob `name`
    - `jump_to(position)` apenas reposiciona o cursor

Decisões arquiteturais:
    - Um Scheduler conduz exatamente uma run (`begin` não é reentrante)
    - Alvos de salto são resolvidos tarde; a validação pós-montagem é
      opcional e fica em `unresolved_jump_targets`

Limites explícitos:
    - Não executa Tasks
    - Não registra logs nem eventos de Manifest
    - Não é thread-safe
"""

from __future__ import annotations

from typing import List, NamedTuple, Optional

from cutflow.core.pipeline.registry import RegistrationEntry, TaskRegistry
from cutflow.core.pipeline.task import Task, declared_jump_targets, describe_task


class SchedulerReuseError(RuntimeError):
    """`begin()` chamado em um Scheduler que já conduziu uma run."""


class UnresolvedTarget(NamedTuple):
    task_name: str
    task_type: str
    target: str


class Scheduler:
    """Registry ordenado de Tasks com um único cursor de execução."""

    def __init__(self, registry: Optional[TaskRegistry] = None):
        self.registry: TaskRegistry = registry if registry is not None else TaskRegistry()
        self._cursor = 0
        self._halted = False
        self._started = False
        self.last_entry: Optional[RegistrationEntry] = None

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def halted(self) -> bool:
        return self._halted

    @property
    def started(self) -> bool:
        return self._started

    def register(self, name: str, task: Task) -> None:
        """Acrescenta a entrada `(name, task)`; nunca falha nem sobrescreve."""
        self.registry.add(name, task)

    def next_task(self) -> Optional[Task]:
        if self._halted or self._cursor >= len(self.registry):
            return None
        entry = self.registry.get(self._cursor)
        self._cursor += 1
        self.last_entry = entry
        return entry.task

    def resolve(self, name: str) -> int:
        """
        Raises:
            TaskNameNotFoundError: Se nenhuma entrada usar `name`.
        """
        return self.registry.resolve(name)

    def jump_to(self, position: int) -> None:
        if not 0 <= position <= len(self.registry):
            raise ValueError(
                f"cursor position {position} outside 0..{len(self.registry)}"
            )
        self._cursor = position

    def halt(self) -> None:
        self._halted = True

    def begin(self) -> None:
        if self._started:
            raise SchedulerReuseError("a Scheduler drives exactly one run")
        self._started = True

    def unresolved_jump_targets(self) -> List[UnresolvedTarget]:
        """
        Alvos declarados por entradas do topo que não estão registrados.

        Filhos de Tasks compostas não são inspecionados: seus redirects
        são descartados pelo composto.
        """
        missing: List[UnresolvedTarget] = []
        for entry in self.registry.entries():
            for target in declared_jump_targets(entry.task):
                if target not in self.registry:
                    missing.append(
                        UnresolvedTarget(entry.name, describe_task(entry.task), target)
                    )
        return missing
