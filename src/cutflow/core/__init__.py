# src/cutflow/core/__init__.py
"""
Core do CutFlow.

Este pacote reúne as responsabilidades essenciais para montar, executar
e rastrear schedules de Tasks nomeadas.

Componentes principais:
    - config       → resolução de settings (merge, hashing, defaults)
    - pipeline     → contrato de Task, redirects, ports e contexto de sessão
    - engine       → scheduler e loop de execução
    - traceability → Manifest e Event Log para auditoria da execução

Princípios fundamentais:
    - Fluxo de controle é explícito: redirects são valores, não exceções
    - Nomes rotulam posições do registry; uma Task pode ocupar várias
    - Estado e efeitos colaterais são sempre rastreáveis

Limites explícitos:
    - Não contém a matemática das Tasks concretas
    - Não depende de solvers reais, apenas de Protocols
"""
