"""Tasks de controle: salto incondicional, salto condicional e Task terminal.

Estas Tasks não tocam o estado algorítmico; apenas decidem o redirect.

- GotoTask(target): sempre `jump_to(target)`.
- ConditionalTask(predicate, true_target, false_target=None): avalia o
  predicado uma vez por execução; verdadeiro → salta para `true_target`;
  falso com `false_target` → salta para ele; falso sem → `CONTINUE`.
- TerminateTask: sempre `HALT`.

Os alvos são nomes e só são resolvidos pelo Engine no momento do salto.
"""

from __future__ import annotations

from typing import Callable, ClassVar, Optional, Tuple

from cutflow.core.pipeline.context import SessionContext
from cutflow.core.pipeline.task import Task
from cutflow.core.pipeline.types import CONTINUE, HALT, Redirect, TaskKind, jump_to


def _require_name(value: object, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty task name")
    return value


class GotoTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.CONTROL

    def __init__(self, target: str):
        self.target = _require_name(target, "target")

    def jump_targets(self) -> Tuple[str, ...]:
        return (self.target,)

    def run(self, ctx: SessionContext) -> Redirect:
        return jump_to(self.target)


class ConditionalTask(Task):
    """
    Salto condicional de dois ramos.

    Subclasses podem sobrescrever `on_true` para efeitos colaterais no
    ramo verdadeiro (ex.: registrar o motivo de término).
    """

    kind: ClassVar[TaskKind] = TaskKind.CONTROL

    def __init__(
        self,
        predicate: Callable[[SessionContext], bool],
        true_target: str,
        false_target: Optional[str] = None,
    ):
        if not callable(predicate):
            raise TypeError("predicate must be callable")
        self.predicate = predicate
        self.true_target = _require_name(true_target, "true_target")
        self.false_target = (
            _require_name(false_target, "false_target") if false_target is not None else None
        )

    def jump_targets(self) -> Tuple[str, ...]:
        if self.false_target is None:
            return (self.true_target,)
        return (self.true_target, self.false_target)

    def on_true(self, ctx: SessionContext) -> None:
        return None

    def run(self, ctx: SessionContext) -> Redirect:
        if self.predicate(ctx):
            self.on_true(ctx)
            return jump_to(self.true_target)
        if self.false_target is not None:
            return jump_to(self.false_target)
        return CONTINUE


class TerminateTask(Task):
    kind: ClassVar[TaskKind] = TaskKind.TERMINATION

    def run(self, ctx: SessionContext) -> Redirect:
        ctx.log(
            task=self.type_name(),
            level="info",
            message="run terminated",
            termination_reason=ctx.termination_reason,
            primal_bound=ctx.primal_bound,
            dual_bound=ctx.dual_bound,
            iterations=ctx.iteration_number,
        )
        return HALT
