# src/cutflow/core/pipeline/task.py
"""
Contrato canônico de Task do CutFlow.

Uma Task é a unidade nomeada de trabalho de um schedule. Ela executa sua
lógica contra o `SessionContext` e devolve um `Redirect` dizendo ao loop
de execução como prosseguir.

Princípios fundamentais:
    - Tasks não conhecem o Scheduler nem os nomes sob os quais foram registradas
    - A mesma instância pode ocupar várias entradas do registry
    - Estado privado persiste entre execuções da mesma instância
    - Conformidade é garantida por duck typing (@runtime_checkable)

Invariantes:
    - `run` pode ser chamado repetidamente na mesma run
    - `run` sempre retorna um `Redirect`
    - `type_name()` é estável e serve apenas a diagnóstico

Limites explícitos:
    - Não aplica redirects (isso é do Engine)
    - Não registra eventos no Manifest diretamente
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Tuple, runtime_checkable

from .types import Redirect, TaskKind

if TYPE_CHECKING:
    from .context import SessionContext


@runtime_checkable
class Task(Protocol):
    """
    Contrato canônico de uma Task do CutFlow.

    Atributos obrigatórios:
        - kind: classificação semântica (`TaskKind`), nunca usada para dispatch

    Métodos:
        - type_name(): rótulo de diagnóstico; por padrão o nome da classe
        - run(ctx): executa a Task e devolve o `Redirect`

    Tasks que redirecionam por nome podem expor também `jump_targets()`,
    usado apenas pela validação de alvos após a montagem.

    Decisões arquiteturais:
        - Classes concretas podem herdar explicitamente deste protocolo
          para reutilizar `type_name()`
        - Identidade de instância importa: Tasks comparam por identidade
    """
    kind: TaskKind

    def type_name(self) -> str:
        return type(self).__name__

    def run(self, ctx: "SessionContext") -> Redirect:
        """Executa a Task contra o contexto da sessão."""
        ...


def describe_task(task: Any) -> str:
    """Rótulo de diagnóstico de `task`, tolerante a implementações duck-typed."""
    type_name = getattr(task, "type_name", None)
    if callable(type_name):
        label = type_name()
        if isinstance(label, str) and label:
            return label
    return type(task).__name__


def declared_jump_targets(task: Any) -> Tuple[str, ...]:
    """Nomes para os quais `task` declara poder redirecionar (vazio se não declarar)."""
    targets = getattr(task, "jump_targets", None)
    if not callable(targets):
        return ()
    return tuple(t for t in targets() if t)
