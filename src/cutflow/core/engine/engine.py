# src/cutflow/core/engine/engine.py
"""
Loop de execução de schedules do CutFlow.

O Engine conduz um `Scheduler` contra um `SessionContext`:

    begin → (validação opcional de alvos) →
    repetir:
        task = next_task()          # None → fim
        log "task started"
        redirect = task.run(ctx)
        log "task finished"
        aplicar redirect (jump → resolve + jump_to, halt → halt)

Guardrails:
- Alvo de salto não registrado é falha fatal de montagem: a run é
  abortada com `UnresolvedJumpTargetError`, que nomeia o tipo da Task, o
  nome registrado e o alvo ausente. Nunca há retry.
- Exceção escapando de `Task.run` é registrada (log + Manifest) e
  relançada como `TaskExecutionError` encadeada.
- Retorno que não seja `Redirect` vira `EngineConfigurationError`.
- Fim do registry sem passar pela Task terminal não é erro, apenas warning.

Settings lidos:
- engine.validate_targets: valida alvos declarados antes do primeiro passo
- engine.trace_tasks: emite os eventos "task started"/"task finished" no contexto
- engine.trace_limit: quantos nomes visitados o `RunResult.trace` retém (os
  mais recentes); 0 ou null desliga o limite
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Deque, NoReturn, Optional, Tuple

from cutflow.core.errors import (
    CutflowErrorPayload,
    engine_configuration_error,
    engine_execution_error,
    unresolved_jump_target,
)
from cutflow.core.exceptions import (
    CutflowException,
    EngineConfigurationError,
    TaskExecutionError,
    UnresolvedJumpTargetError,
)
from cutflow.core.pipeline.context import SessionContext
from cutflow.core.pipeline.registry import TaskNameNotFoundError
from cutflow.core.pipeline.task import Task, describe_task
from cutflow.core.pipeline.types import Redirect, RedirectKind
from cutflow.core.traceability.manifest import add_event, task_failed, task_finished, task_started

from .scheduler import Scheduler


ENGINE_SOURCE = "engine"


@dataclass(frozen=True)
class RunResult:
    """
    Resultado agregado de uma run (nomes visitados, passos, parada, motivo).

    `trace` guarda apenas os últimos `engine.trace_limit` nomes; `steps`
    conta todos os passos executados.
    """

    trace: Tuple[str, ...]
    steps: int
    halted: bool
    termination_reason: Optional[str] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Engine:
    """Executor canônico de um Scheduler montado."""

    def __init__(self, *, scheduler: Scheduler, ctx: SessionContext):
        self.scheduler: Scheduler = scheduler
        self.ctx: SessionContext = ctx

    def _validate_targets(self) -> bool:
        return bool(self.ctx.setting("engine.validate_targets"))

    def _trace_tasks(self) -> bool:
        return bool(self.ctx.setting("engine.trace_tasks"))

    def _trace_limit(self) -> Optional[int]:
        limit = self.ctx.setting("engine.trace_limit")
        return int(limit) if limit else None

    # ------------------------------------------------------------------
    # Registro de falhas
    # ------------------------------------------------------------------

    def _record_failure(self, *, task_name: Optional[str], payload: CutflowErrorPayload) -> None:
        self.ctx.log(
            task=ENGINE_SOURCE,
            level="error",
            message=payload.message,
            error_type=payload.type,
            details=dict(payload.details),
        )
        manifest = self.ctx.manifest
        if manifest is None:
            return
        if task_name is not None:
            task_failed(manifest, task_name=task_name, ts=_now(), error=payload.to_dict())
        add_event(manifest, event_type="run_failed", ts=_now(), payload=payload.to_dict())

    def _fail_unresolved(
        self,
        *,
        task_name: str,
        task_type: str,
        target: str,
        cause: Optional[BaseException] = None,
    ) -> NoReturn:
        payload = unresolved_jump_target(task_type=task_type, task_name=task_name, target=target)
        self._record_failure(task_name=task_name, payload=payload)
        raise UnresolvedJumpTargetError(
            message=f"{task_type} '{task_name}' redirects to unregistered task '{target}'",
            details=dict(payload.details),
            hint=payload.hint,
        ) from cause

    def _exception_to_error(self, exc: Exception, *, task_name: str, task_type: str) -> CutflowErrorPayload:
        """Converte exceções de Task em payload serializável, sem stack trace."""
        if isinstance(exc, CutflowException):
            details = {"task": task_name, "task_type": task_type}
            details.update(exc.details or {})
            return CutflowErrorPayload(
                type=exc.__class__.__name__,
                message=str(exc) or "Erro de execução",
                details=details,
                hint=exc.hint,
            )
        return engine_execution_error(
            task=task_name,
            task_type=task_type,
            exc_type=exc.__class__.__name__,
            exc_message=str(exc) or None,
        )

    # ------------------------------------------------------------------
    # Trace
    # ------------------------------------------------------------------

    def _task_started(self, *, task_name: str, task: Task, task_type: str) -> None:
        kind = getattr(task, "kind", None)
        kind_value = getattr(kind, "value", kind)
        if self._trace_tasks():
            self.ctx.log(task=task_type, level="debug", message="task started", task_name=task_name)
        if self.ctx.manifest is not None:
            task_started(
                self.ctx.manifest,
                task_name=task_name,
                task_type=task_type,
                kind=kind_value,
                ts=_now(),
            )

    def _task_finished(self, *, task_name: str, task_type: str, redirect: Redirect) -> None:
        if self._trace_tasks():
            self.ctx.log(
                task=task_type,
                level="debug",
                message="task finished",
                task_name=task_name,
                redirect=redirect.kind.value,
                target=redirect.target,
            )
        if self.ctx.manifest is not None:
            task_finished(self.ctx.manifest, task_name=task_name, ts=_now(), redirect=redirect.to_dict())

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def _apply(self, redirect: Redirect, *, task_name: str, task_type: str) -> None:
        if redirect.kind == RedirectKind.JUMP:
            try:
                position = self.scheduler.resolve(redirect.target)
            except TaskNameNotFoundError as e:
                self._fail_unresolved(
                    task_name=task_name,
                    task_type=task_type,
                    target=redirect.target,
                    cause=e,
                )
            self.scheduler.jump_to(position)
        elif redirect.kind == RedirectKind.HALT:
            self.scheduler.halt()

    def _check_targets(self) -> None:
        missing = self.scheduler.unresolved_jump_targets()
        if missing:
            first = missing[0]
            self._fail_unresolved(task_name=first.task_name, task_type=first.task_type, target=first.target)

    def run(self) -> RunResult:
        self.scheduler.begin()
        if self.ctx.manifest is not None:
            add_event(
                self.ctx.manifest,
                event_type="run_started",
                ts=_now(),
                payload={"entries": len(self.scheduler.registry)},
            )

        if self._validate_targets():
            self._check_targets()

        trace: Deque[str] = deque(maxlen=self._trace_limit())
        steps = 0
        while True:
            task = self.scheduler.next_task()
            if task is None:
                break

            entry = self.scheduler.last_entry
            task_name = entry.name
            task_type = describe_task(task)
            trace.append(task_name)
            steps += 1

            self._task_started(task_name=task_name, task=task, task_type=task_type)
            try:
                redirect = task.run(self.ctx)
            except Exception as e:
                payload = self._exception_to_error(e, task_name=task_name, task_type=task_type)
                self._record_failure(task_name=task_name, payload=payload)
                if isinstance(e, CutflowException):
                    raise
                raise TaskExecutionError(
                    message=f"{task_type} '{task_name}' raised {e.__class__.__name__}",
                    details=dict(payload.details),
                    hint=payload.hint,
                ) from e

            if not isinstance(redirect, Redirect):
                payload = engine_configuration_error(
                    message="Task retornou tipo inválido",
                    details={
                        "task": task_name,
                        "task_type": task_type,
                        "expected": "Redirect",
                        "received": type(redirect).__name__,
                    },
                    hint="Ajuste a Task para retornar CONTINUE, HALT ou jump_to(nome)",
                )
                self._record_failure(task_name=task_name, payload=payload)
                raise EngineConfigurationError(
                    message=payload.message,
                    details=dict(payload.details),
                    hint=payload.hint,
                )

            self._task_finished(task_name=task_name, task_type=task_type, redirect=redirect)
            self._apply(redirect, task_name=task_name, task_type=task_type)

        if not self.scheduler.halted:
            self.ctx.add_warning(
                task=ENGINE_SOURCE,
                message="schedule exhausted without reaching a terminal task",
            )

        result = RunResult(
            trace=tuple(trace),
            steps=steps,
            halted=self.scheduler.halted,
            termination_reason=self.ctx.termination_reason,
        )

        if self.ctx.manifest is not None:
            add_event(
                self.ctx.manifest,
                event_type="run_finished",
                ts=_now(),
                payload={
                    "steps": result.steps,
                    "halted": result.halted,
                    "termination_reason": result.termination_reason,
                },
            )

        return result
