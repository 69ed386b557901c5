# src/cutflow/core/engine/__init__.py
"""
Execução de schedules: `Scheduler` (registry + cursor + parada) e `Engine`
(loop que executa Tasks e aplica seus redirects).
"""

from .engine import Engine, RunResult
from .scheduler import Scheduler, SchedulerReuseError, UnresolvedTarget

__all__ = ["Engine", "RunResult", "Scheduler", "SchedulerReuseError", "UnresolvedTarget"]
