# src/cutflow/core/config/errors.py
"""
Exceções da camada de settings do CutFlow.

Todas herdam de `ConfigError`, permitindo captura genérica de falhas de
carregamento e merge sem confundi-las com falhas de execução de Tasks.
"""


class ConfigError(Exception):
    """Exceção base para erros de carregamento ou resolução de settings."""


class DefaultsNotFoundError(ConfigError):
    """
    Arquivo de settings base não encontrado no caminho informado.

    Limites explícitos:
        - Não cria o arquivo nem cai para os defaults embutidos
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo de settings não suportada.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do arquivo de settings não é um mapa chave-valor."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos entre base e override durante o deep-merge.

    Exemplo de conflito:
        - base:     {"termination": {"iteration_limit": 200}}
        - override: {"termination": "strict"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """
