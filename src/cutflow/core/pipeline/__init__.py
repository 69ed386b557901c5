# src/cutflow/core/pipeline/__init__.py
"""
# Pipeline Core: CutFlow

Este pacote define os **contratos canônicos** de um schedule de Tasks.

Um schedule é uma **lista ordenada de entradas nomeadas**, onde:
- cada entrada associa um nome a uma instância de Task
- a ordem de registro define o fallthrough
- Tasks redirecionam a execução devolvendo um `Redirect`
- o estado compartilhado é mediado pelo `SessionContext`

## Componentes

- **types**
  - `TaskKind`, `RedirectKind`, `Redirect`, `CONTINUE`, `HALT`, `jump_to`
  - `SolutionStatus`, `Iteration`, `PrimalSolution`, `Hyperplane`

- **task**
  - `Task` (Protocol): contrato mínimo que toda Task deve satisfazer

- **ports**
  - `ProblemModel`, `DualSolver`, `PrimalSolver`, `InteriorPointSolver` (Protocols) e `DualSolution`

- **context**
  - `SessionContext`: estado compartilhado, settings, logs e warnings

- **registry**
  - `TaskRegistry`: entradas ordenadas, nomes duplicados, resolução pela primeira

## Invariantes

- Redirects são valores, nunca exceções
- Tasks não conhecem seus nomes registrados
"""
