# src/cutflow/__init__.py
"""
CutFlow: engine de controle de fluxo para algoritmos iterativos de geração de cortes.

Este pacote raiz define o namespace público do CutFlow, um executor de
pipelines nomeados projetado para conduzir algoritmos de outer
approximation (busca dual/primal, geração de hiperplanos, verificação de
estagnação e convergência).

Princípios centrais:
    - A estratégia de solução é um grafo de Tasks nomeadas
    - Tasks redirecionam execução por nome, nunca por exceção
    - Toda comunicação entre Tasks passa pelo SessionContext
    - Rastreabilidade da execução é um requisito de primeira classe

Arquitetura em alto nível:
    - core.config       → carregamento, merge, hashing e defaults de settings
    - core.pipeline     → contrato de Task, redirects, contexto de sessão e registry
    - core.engine       → scheduler (registry + cursor) e loop de execução
    - core.traceability → Manifest e Event Log da execução
    - tasks             → vocabulário de Tasks (controle, composição, checks, folhas)
    - strategies        → montagem das variantes de algoritmo

Limites explícitos:
    - Não modela expressões matemáticas nem convexidade
    - Não implementa sub-solvers (LP/MIP/NLP), apenas os consome via ports
    - Não executa múltiplos schedules concorrentemente

Este módulo existe para estabelecer o namespace do CutFlow.
"""

__version__ = "0.1.0"
