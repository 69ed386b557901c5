# src/cutflow/core/pipeline/registry.py
"""
Registro ordenado de Tasks nomeadas.

Este módulo define o `TaskRegistry`, a sequência de entradas
`(posição, nome, Task)` montada por uma estratégia antes da execução.

A ordem de inserção define o sucessor por fallthrough de cada entrada.
Nomes rotulam posições: a mesma instância de Task pode ser registrada
sob vários nomes, e o mesmo nome pode aparecer mais de uma vez.

Decisões arquiteturais:
    - O registro nunca falha nem sobrescreve entradas
    - Nomes duplicados são admitidos; `resolve` devolve sempre a
      primeira posição registrada sob o nome
    - Referências adiante são legais: nomes só são resolvidos na hora
      do salto (ou na validação pós-montagem)

Invariantes:
    - `entries()` reflete exatamente a ordem de registro
    - A posição de uma entrada nunca muda após o registro
    - `resolve(name)` é estável enquanto o registry cresce

Limites explícitos:
    - Não executa Tasks
    - Não mantém cursor (isso é do Scheduler)
    - Não valida alvos de salto
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .task import Task


class TaskNameNotFoundError(LookupError):
    """
    Nenhuma entrada do registry está associada ao nome pedido.

    Esta é a falha `NameNotFound` do schedule: em tempo de execução ela é
    fatal e o Engine a converte em `UnresolvedJumpTargetError`.
    """

    def __init__(self, name: str):
        super().__init__(f"Task name not registered: {name!r}")
        self.name = name


@dataclass(frozen=True)
class RegistrationEntry:
    """Entrada imutável do registry."""
    position: int
    name: str
    task: Task


@dataclass
class TaskRegistry:
    """
    Sequência ordenada de entradas nomeadas.

    Mantém a lista de entradas e, em paralelo, um índice
    nome → primeira posição para resolução em tempo constante.
    """

    _entries: List[RegistrationEntry] = field(default_factory=list, init=False, repr=False)
    _first_position: Dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def add(self, name: str, task: Task) -> RegistrationEntry:
        entry = RegistrationEntry(position=len(self._entries), name=name, task=task)
        self._entries.append(entry)
        self._first_position.setdefault(name, entry.position)
        return entry

    def resolve(self, name: str) -> int:
        try:
            return self._first_position[name]
        except KeyError:
            raise TaskNameNotFoundError(name) from None

    def get(self, position: int) -> RegistrationEntry:
        return self._entries[position]

    def entries(self) -> List[RegistrationEntry]:
        return list(self._entries)

    def names(self) -> List[str]:
        return [e.name for e in self._entries]

    def positions_of(self, name: str) -> List[int]:
        return [e.position for e in self._entries if e.name == name]

    def __contains__(self, name: object) -> bool:
        return name in self._first_position

    def __len__(self) -> int:
        return len(self._entries)
