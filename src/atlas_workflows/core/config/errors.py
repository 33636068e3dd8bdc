# src/atlas_workflows/core/config/errors.py
"""
Exceções da camada de configuração dos workflows.

Representam violações estruturais da configuração (arquivo ausente, formato
desconhecido, raiz inválida, conflito de merge, seção `workflow:` malformada),
e não falhas de treino ou predição.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma delas é levantada depois que o Workflow começa a treinar
"""


class ConfigError(Exception):
    """Base de todos os erros de configuração."""


class DefaultsNotFoundError(ConfigError):
    """
    O arquivo de defaults não existe.

    Decisões arquiteturais:
        - Defaults são obrigatórios; não são inferidos nem criados
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo não suportada.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do arquivo não é um mapa chave-valor."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge.

    Exemplo:
        - base:     {"workflow": {"model": {"params": {"alpha": 1.0}}}}
        - override: {"workflow": {"model": "ridge_reg"}}

    Nenhum merge parcial é produzido em caso de conflito.
    """


class InvalidWorkflowConfigError(ConfigError):
    """
    A seção `workflow:` não descreve um Workflow válido.

    Exemplos:
        - mais de uma variante de preprocessor declarada
        - `model_id` desconhecido no registry
        - tipo de ajuste de pós-processamento desconhecido
    """
