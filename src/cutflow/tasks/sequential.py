"""
Task composta sequencial.

Uma `SequentialTask` agrupa filhos que executam como um único passo do
schedule. É usada pelas estratégias para montar a finalização da
solução: o composto é registrado cedo (alvo de vários checks) e seus
filhos são acrescentados enquanto o resto do schedule é construído.

Decisões arquiteturais:
    - Todos os filhos executam, em ordem, a cada execução do composto
    - Redirects dos filhos (inclusive `HALT`) são descartados
    - O composto sempre devolve `CONTINUE`
    - Filhos podem ser acrescentados depois do registro, mas não
      enquanto o composto está executando

Limites explícitos:
    - Não declara `jump_targets`: alvos de filhos nunca são seguidos
    - Não captura exceções de filhos
"""

from __future__ import annotations

from typing import ClassVar, List

from cutflow.core.pipeline.context import SessionContext
from cutflow.core.pipeline.task import Task, describe_task
from cutflow.core.pipeline.types import CONTINUE, Redirect, RedirectKind, TaskKind


class SequentialTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.COMPOSITE

    def __init__(self) -> None:
        self._children: List[Task] = []
        self._running = False

    @property
    def children(self) -> List[Task]:
        return list(self._children)

    def add_task(self, task: Task) -> None:
        if self._running:
            raise RuntimeError("cannot add children to a SequentialTask while it is running")
        self._children.append(task)

    def run(self, ctx: SessionContext) -> Redirect:
        self._running = True
        try:
            for child in self._children:
                discarded = child.run(ctx)
                if isinstance(discarded, Redirect) and discarded.kind != RedirectKind.CONTINUE:
                    ctx.log(
                        task=self.type_name(),
                        level="debug",
                        message="child redirect discarded",
                        child=describe_task(child),
                        redirect=discarded.kind.value,
                        target=discarded.target,
                    )
        finally:
            self._running = False
        return CONTINUE
