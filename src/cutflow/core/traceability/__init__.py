# src/cutflow/core/traceability/__init__.py
"""
Rastreabilidade de runs do CutFlow.

Expõe o `RunManifest` e as operações explícitas que o Engine usa para
registrar início, fim e falha de cada visita a uma entrada do schedule.
"""

from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    load_manifest,
    save_manifest,
    task_failed,
    task_finished,
    task_started,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "load_manifest",
    "save_manifest",
    "task_failed",
    "task_finished",
    "task_started",
]
