# src/cutflow/core/traceability/manifest.py
"""
Manifest v1: rastreabilidade de execuções de schedules no CutFlow.

O Manifest consolida, de forma determinística e auditável:
    - metadados da run (run_id, started_at, versão, variante da estratégia)
    - hash dos settings efetivos
    - estado incremental por nome registrado (visitas, status, último redirect)
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip JSON)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O estado de Task é indexado pelo nome registrado, não pela instância:
      uma Task registrada sob dois nomes tem duas entradas
    - Uma mesma entrada acumula `visits` a cada passagem do cursor
    - Com `max_events`, o Event Log retém só os eventos mais recentes e
      conta os descartados em `dropped_events`

Limites explícitos:
    - Não executa schedules
    - Não decide política de execução
    - Não migra versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Normaliza `dt` para timezone-aware em UTC (naive é assumido UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Registro de uma execução de schedule.

    Campos principais:
        - run: metadados da execução
        - inputs: hash dos settings e variante da estratégia
        - tasks: estado incremental indexado pelo nome registrado
        - events: Event Log ordenado

    Invariantes:
        - `tasks` é sempre um dicionário indexado por nome
        - `events` é sempre uma lista ordenada
        - `len(events) <= max_events` quando `max_events` está definido
        - A estrutura completa é serializável em JSON
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    tasks: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)
    max_events: Optional[int] = None
    dropped_events: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "tasks": {k: dict(v) for k, v in self.tasks.items()},
            "events": [dict(e) for e in self.events],
            "limits": {"max_events": self.max_events, "dropped_events": self.dropped_events},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        limits = data.get("limits", {}) or {}
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            tasks={k: dict(v) for k, v in (data.get("tasks", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
            max_events=limits.get("max_events"),
            dropped_events=int(limits.get("dropped_events", 0)),
        )

    def event_types(self) -> List[str]:
        return [e["event_type"] for e in self.events]


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    cutflow_version: str,
    config_hash: str,
    strategy: Optional[str] = None,
    max_events: Optional[int] = None,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    ⚠️ Importante: esta função **não emite eventos**. O Event Log começa
    vazio e só é preenchido por `add_event`, `task_started`,
    `task_finished` ou `task_failed`.

    Args:
        run_id (str): Identificador único da run.
        started_at (datetime): Início da run.
        cutflow_version (str): Versão do CutFlow utilizada.
        config_hash (str): Hash dos settings efetivos.
        strategy (Optional[str]): Variante da estratégia montada.
        max_events (Optional[int]): Tamanho máximo do Event Log; `None`
            ou `0` mantém todos os eventos.

    Returns:
        RunManifest: Manifest com `tasks` e `events` vazios.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "cutflow_version": cutflow_version,
        },
        inputs={
            "config_hash": config_hash,
            "strategy": strategy,
        },
        max_events=int(max_events) if max_events else None,
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    task_name: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona exatamente um evento ao Event Log, preservando a ordem de chamada.

    Eventos de escopo global (ex.: `run_started`) omitem `task_name`.
    Se o Event Log exceder `max_events`, o evento mais antigo é descartado.
    """
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if task_name is not None:
        ev["task_name"] = task_name
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)
    if manifest.max_events is not None and len(manifest.events) > manifest.max_events:
        del manifest.events[0]
        manifest.dropped_events += 1


def task_started(
    manifest: RunManifest,
    *,
    task_name: str,
    task_type: str,
    kind: Optional[str],
    ts: datetime,
) -> None:
    """
    Marca a entrada `task_name` como em execução e incrementa `visits`.

    O estado é criado sob demanda na primeira visita.
    """
    s = manifest.tasks.setdefault(task_name, {"task_name": task_name, "visits": 0})
    s.update(
        {
            "task_type": task_type,
            "kind": kind,
            "status": "running",
            "started_at": _iso(ts),
            "visits": int(s.get("visits", 0)) + 1,
        }
    )
    add_event(
        manifest,
        event_type="task_started",
        ts=ts,
        task_name=task_name,
        payload={"task_type": task_type, "visit": s["visits"]},
    )


def task_finished(
    manifest: RunManifest,
    *,
    task_name: str,
    ts: datetime,
    redirect: Dict[str, Any],
) -> None:
    """
    Registra a conclusão de uma visita, com duração e redirect devolvido.

    A duração é calculada a partir de `started_at` quando disponível.
    """
    s = manifest.tasks.setdefault(task_name, {"task_name": task_name, "visits": 0})

    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

    s.update(
        {
            "status": "finished",
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "last_redirect": dict(redirect),
        }
    )
    add_event(
        manifest,
        event_type="task_finished",
        ts=ts,
        task_name=task_name,
        payload={"redirect": dict(redirect), "duration_ms": s["duration_ms"]},
    )


def task_failed(
    manifest: RunManifest,
    *,
    task_name: str,
    ts: datetime,
    error: Union[str, Dict[str, Any]],
) -> None:
    """Marca a entrada como `failed` e registra o erro (texto ou payload canônico)."""
    s = manifest.tasks.setdefault(task_name, {"task_name": task_name, "visits": 0})
    s.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "error": error,
        }
    )
    add_event(manifest, event_type="task_failed", ts=ts, task_name=task_name, payload={"error": error})


def save_manifest(manifest: RunManifest, path: Path) -> None:
    """
    Persiste o Manifest como JSON determinístico (chaves ordenadas, indentado).

    Diretórios intermediários são criados automaticamente.

    Raises:
        OSError: Em caso de falha de escrita.
        TypeError: Se algum payload não for serializável.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> RunManifest:
    """Restaura um Manifest salvo por `save_manifest`."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
