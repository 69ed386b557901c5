# src/cutflow/core/config/defaults.py
"""
Settings canônicos embutidos do CutFlow.

Este módulo declara todas as chaves lidas pelo engine e pelas Tasks do
vocabulário padrão, com seus valores default. Arquivos de settings do
usuário são sempre mesclados sobre esta base.

Seções:
    - engine       → validação de alvos, trace de Tasks e limites de retenção
    - strategy     → variante do algoritmo (auto | nlp | mip) e convexidade assumida
    - termination  → critérios de parada e de estagnação
    - dual         → estratégia de cortes (ecp | esh), root search e limite de soluções
    - primal       → tolerância de viabilidade, subproblema NLP, linesearch e cortes de redução

Invariantes:
    - `DEFAULT_SETTINGS` nunca é mutado em runtime
    - Toda chave consultada via `SessionContext.setting` existe aqui
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .merge import deep_merge


DEFAULT_SETTINGS: Dict[str, Any] = {
    "engine": {
        "validate_targets": True,
        "trace_tasks": True,
        "trace_limit": 10000,
        "max_log_events": 100000,
        "max_manifest_events": 100000,
    },
    "strategy": {
        "variant": "auto",
        "assume_convex": False,
    },
    "termination": {
        "absolute_gap": 1e-3,
        "relative_gap": 1e-3,
        "iteration_limit": 200,
        "time_limit": 900.0,
        "constraint_tolerance": 1e-8,
        "primal_stagnation_iterations": 10,
        "dual_stagnation_iterations": 50,
        "max_primal_reduction_cuts": 5,
    },
    "dual": {
        "cut_strategy": "ecp",
        "hyperplanes": {
            "max_per_iteration": 50,
        },
        "esh": {
            "interior_point": {
                "use_primal": "average",
                "primal_weight": 0.5,
            },
            "rootsearch": {
                "tolerance": 1e-10,
                "max_iterations": 100,
            },
        },
        "solution_limit": {
            "strategy": "unlimited",
            "initial": 1,
            "increment": 1,
            "increase_after": 5,
            "adaptive_tolerance": 1e-3,
            "force_optimal_after": 10,
        },
    },
    "primal": {
        "feasibility_tolerance": 1e-8,
        "fixed_integer": {
            "enabled": True,
        },
        "linesearch": {
            "enabled": True,
        },
        "reduction_cut": {
            "factor": 1e-3,
        },
    },
}


def resolve_settings(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Retorna uma cópia de `DEFAULT_SETTINGS` com `overrides` aplicados."""
    return deep_merge(DEFAULT_SETTINGS, overrides or {})
