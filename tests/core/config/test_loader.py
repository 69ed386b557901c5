# tests/core/config/test_loader.py
"""
Testes do carregador de settings (load_config).

Este módulo valida o comportamento do loader responsável por:
- partir sempre de `DEFAULT_SETTINGS`
- aplicar um arquivo base, obrigatório quando informado
- aplicar um arquivo local de overrides, opcional
- rejeitar formatos e raízes inválidas

Decisões arquiteturais:
    - Settings são declarativos e baseados em arquivos
    - Defaults embutidos formam a base canônica
    - Arquivos locais atuam apenas como override explícito

Invariantes:
    - O resultado é sempre um dicionário
    - Nenhum resultado parcial é retornado em caso de erro

Limites explícitos:
    - Não valida hashing
    - Não valida semântica dos valores
"""

from pathlib import Path

import pytest

try:
    from cutflow.core.config.loader import load_config
    from cutflow.core.config.defaults import DEFAULT_SETTINGS
    from cutflow.core.config.errors import (
        ConfigTypeConflictError,
        DefaultsNotFoundError,
        InvalidConfigRootTypeError,
        UnsupportedConfigFormatError,
    )
except Exception as e:  # noqa: BLE001
    load_config = None
    DEFAULT_SETTINGS = None
    ConfigTypeConflictError = None
    DefaultsNotFoundError = None
    InvalidConfigRootTypeError = None
    UnsupportedConfigFormatError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o loader de settings e suas exceções tipadas estejam disponíveis.

    Falha imediatamente, com mensagem apontando os módulos esperados,
    em vez de deixar os testes quebrarem com `NoneType`.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing settings loader. Implement:
- src/cutflow/core/config/loader.py (load_config)
- src/cutflow/core/config/errors.py (ConfigError hierarchy)
Import error: {_IMPORT_ERR}
""")


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_no_files_returns_builtin_defaults():
    """
    Sem arquivos, o resultado é uma cópia dos defaults embutidos.

    Invariantes:
        - O resultado é igual a `DEFAULT_SETTINGS`
        - O resultado não é o mesmo objeto (nenhuma mutação vaza)
    """
    _require_imports()
    cfg = load_config()
    assert cfg == DEFAULT_SETTINGS
    assert cfg is not DEFAULT_SETTINGS

    cfg["termination"]["iteration_limit"] = 1
    assert DEFAULT_SETTINGS["termination"]["iteration_limit"] == 200


def test_base_and_local_files_are_layered(tmp_path, settings_base_yaml, settings_local_yaml):
    """
    Verifica a precedência defaults → base → local.

    Decisões arquiteturais:
        - Chaves ausentes nos arquivos mantêm o valor embutido
        - O arquivo local vence o base chave a chave
    """
    _require_imports()
    base = _write(tmp_path / "cutflow.yaml", settings_base_yaml)
    local = _write(tmp_path / "cutflow.local.yaml", settings_local_yaml)

    cfg = load_config(defaults_path=str(base), local_path=str(local))

    assert cfg["termination"]["iteration_limit"] == 10
    assert cfg["termination"]["time_limit"] == 60
    assert cfg["termination"]["absolute_gap"] == 0.001
    assert cfg["termination"]["relative_gap"] == DEFAULT_SETTINGS["termination"]["relative_gap"]
    assert cfg["dual"]["solution_limit"]["strategy"] == "increase"
    assert cfg["dual"]["solution_limit"]["initial"] == 1
    assert cfg["engine"]["validate_targets"] is True
    assert cfg["engine"]["trace_tasks"] is False
    assert cfg["engine"]["trace_limit"] == DEFAULT_SETTINGS["engine"]["trace_limit"]


def test_missing_local_file_is_ignored(tmp_path, settings_base_yaml):
    """O arquivo local é opcional: ausente, o resultado é defaults + base."""
    _require_imports()
    base = _write(tmp_path / "cutflow.yaml", settings_base_yaml)

    cfg = load_config(defaults_path=str(base), local_path=str(tmp_path / "nope.yaml"))

    assert cfg["termination"]["iteration_limit"] == 50


def test_missing_base_file_is_fatal(tmp_path):
    """Um arquivo base informado e inexistente nunca cai silenciosamente nos defaults."""
    _require_imports()
    with pytest.raises(DefaultsNotFoundError):
        load_config(defaults_path=str(tmp_path / "missing.yaml"))


def test_json_files_are_supported(tmp_path):
    _require_imports()
    base = _write(tmp_path / "cutflow.json", '{"strategy": {"variant": "mip"}}')

    cfg = load_config(defaults_path=str(base))

    assert cfg["strategy"]["variant"] == "mip"


def test_empty_yaml_is_an_empty_layer(tmp_path):
    _require_imports()
    base = _write(tmp_path / "cutflow.yaml", "")
    assert load_config(defaults_path=str(base)) == DEFAULT_SETTINGS


def test_unsupported_extension_is_rejected(tmp_path):
    _require_imports()
    base = _write(tmp_path / "cutflow.toml", "[engine]\n")
    with pytest.raises(UnsupportedConfigFormatError):
        load_config(defaults_path=str(base))


def test_non_mapping_root_is_rejected(tmp_path):
    """
    A raiz do arquivo precisa ser um mapa chave-valor.

    Uma lista YAML no topo é erro estrutural e é reportada como
    `InvalidConfigRootTypeError`.
    """
    _require_imports()
    base = _write(tmp_path / "cutflow.yaml", "- a\n- b\n")
    with pytest.raises(InvalidConfigRootTypeError):
        load_config(defaults_path=str(base))


def test_type_conflict_against_defaults_is_fatal(tmp_path):
    """Sobrescrever uma seção inteira por um escalar é conflito de tipo."""
    _require_imports()
    base = _write(tmp_path / "cutflow.yaml", "termination: strict\n")
    with pytest.raises(ConfigTypeConflictError):
        load_config(defaults_path=str(base))
