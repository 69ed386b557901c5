# src/cutflow/strategies/__init__.py
"""Builders de estratégia: montam o schedule de cada variante e o executam."""

from .cutting_plane import (
    CUT_STRATEGIES,
    FINAL_REDUCTION_CUT,
    FINALIZE,
    STRATEGY_BUILDERS,
    build_mip_strategy,
    build_nlp_strategy,
    build_strategy,
    resolve_cut_strategy,
    resolve_variant,
    solve,
)

__all__ = [
    "CUT_STRATEGIES",
    "FINAL_REDUCTION_CUT",
    "FINALIZE",
    "STRATEGY_BUILDERS",
    "build_mip_strategy",
    "build_nlp_strategy",
    "build_strategy",
    "resolve_cut_strategy",
    "resolve_variant",
    "solve",
]
