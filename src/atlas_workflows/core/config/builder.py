# src/atlas_workflows/core/config/builder.py
"""
Construção declarativa de um Workflow a partir da configuração.

Formato da seção `workflow:` (v1):

    workflow:
      preprocessor:                      # exatamente uma variante (opcional)
        formula: "y ~ x1 + x2"
        # variables: {outcomes: y, predictors: [x1, x2]}
        # recipe:
        #   outcome: y
        #   steps:
        #     - {step: normalize, columns: [x1, x2]}
        #     - {step: dummy, columns: {selector: all_nominal}}
      model:
        model_id: linear_reg
        params: {}
        formula: "y ~ x1 + spline(x2, df=4)"   # opcional
      postprocessor:                     # opcional
        adjustments:
          - {type: probability_threshold, threshold: 0.7}
        calibration_prop: null
        seed: 42

Decisões arquiteturais:
    - Erros estruturais da seção viram `InvalidWorkflowConfigError` antes
      que qualquer slot seja preenchido
    - Regras de estado (conflitos, modos) continuam sendo do Workflow
    - O hash da configuração efetiva é registrado no evento `workflow_built`

Limites explícitos:
    - Não treina o workflow
    - Não aceita transformers arbitrários em recipe (apenas steps nomeados)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from atlas_workflows.core.workflow import Workflow
from atlas_workflows.modeling.model_spec import ModelRegistry, ModelSpec
from atlas_workflows.postprocessing.postprocessor import PostProcessor
from atlas_workflows.preprocessing import selectors
from atlas_workflows.preprocessing.recipe import Recipe
from atlas_workflows.preprocessing.variables import Variables

from .errors import InvalidWorkflowConfigError
from .hashing import compute_config_hash


_SELECTORS = {
    "everything": selectors.everything,
    "all_numeric": selectors.all_numeric,
    "all_nominal": selectors.all_nominal,
    "starts_with": selectors.starts_with,
    "ends_with": selectors.ends_with,
    "contains": selectors.contains,
    "matches": selectors.matches,
    "one_of": selectors.one_of,
}

_PREPROCESSOR_KEYS = ("formula", "variables", "recipe")


def _section(cfg: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = cfg.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise InvalidWorkflowConfigError(f"workflow.{key} deve ser um mapa, recebido: {type(value).__name__}")
    return value


def _columns(spec: Any, *, where: str) -> Any:
    """Converte colunas declaradas (nome, lista ou `{selector: ..., args: [...]}`)."""
    if isinstance(spec, (str, list)):
        return spec
    if isinstance(spec, dict):
        name = spec.get("selector")
        if name not in _SELECTORS:
            raise InvalidWorkflowConfigError(f"{where}: seletor desconhecido: {name!r}")
        args = spec.get("args") or []
        if not isinstance(args, list):
            args = [args]
        return _SELECTORS[name](*args)
    raise InvalidWorkflowConfigError(f"{where}: colunas inválidas: {spec!r}")


def _build_recipe(cfg: Dict[str, Any]) -> Recipe:
    outcome = cfg.get("outcome")
    if not isinstance(outcome, str) or not outcome:
        raise InvalidWorkflowConfigError("workflow.preprocessor.recipe.outcome é obrigatório")

    predictors = cfg.get("predictors")
    recipe = Recipe(
        outcome=outcome,
        predictors=None if predictors is None else _columns(predictors, where="recipe.predictors"),
    )

    steps: List[Any] = cfg.get("steps") or []
    for i, item in enumerate(steps):
        where = f"recipe.steps[{i}]"
        if not isinstance(item, dict) or "step" not in item or "columns" not in item:
            raise InvalidWorkflowConfigError(f"{where}: esperado {{step: <nome>, columns: ...}}")
        params = {k: v for k, v in item.items() if k not in ("step", "columns")}
        try:
            recipe = recipe.add_configured_step(item["step"], _columns(item["columns"], where=where), **params)
        except (TypeError, ValueError) as e:
            raise InvalidWorkflowConfigError(f"{where}: {e}") from e
    return recipe


def _build_preprocessor(cfg: Dict[str, Any]) -> Any:
    declared = [k for k in _PREPROCESSOR_KEYS if cfg.get(k) is not None]
    if len(declared) > 1:
        raise InvalidWorkflowConfigError(
            f"workflow.preprocessor declara mais de uma variante: {declared}"
        )
    if not declared:
        return None

    kind = declared[0]
    value = cfg[kind]
    if kind == "formula":
        if not isinstance(value, str):
            raise InvalidWorkflowConfigError("workflow.preprocessor.formula deve ser string")
        return value
    if kind == "variables":
        if not isinstance(value, dict) or "outcomes" not in value:
            raise InvalidWorkflowConfigError("workflow.preprocessor.variables.outcomes é obrigatório")
        predictors = value.get("predictors")
        return Variables(
            outcomes=_columns(value["outcomes"], where="variables.outcomes"),
            predictors=None if predictors is None else _columns(predictors, where="variables.predictors"),
        )
    if not isinstance(value, dict):
        raise InvalidWorkflowConfigError("workflow.preprocessor.recipe deve ser um mapa")
    return _build_recipe(value)


def _build_model(cfg: Dict[str, Any], registry: ModelRegistry) -> ModelSpec:
    model_id = cfg.get("model_id")
    try:
        spec = registry.get(model_id)
    except KeyError as e:
        raise InvalidWorkflowConfigError(f"workflow.model.model_id desconhecido: {model_id!r}") from e

    params = cfg.get("params") or {}
    if not isinstance(params, dict):
        raise InvalidWorkflowConfigError("workflow.model.params deve ser um mapa")
    return spec.set_params(**params) if params else spec


def _build_postprocessor(cfg: Dict[str, Any]) -> PostProcessor:
    adjustments = cfg.get("adjustments") or []
    if not isinstance(adjustments, list):
        raise InvalidWorkflowConfigError("workflow.postprocessor.adjustments deve ser uma lista")
    try:
        return PostProcessor.from_adjustments(adjustments)
    except (TypeError, ValueError) as e:
        raise InvalidWorkflowConfigError(f"workflow.postprocessor: {e}") from e


def build_workflow(config: Dict[str, Any], *, registry: Optional[ModelRegistry] = None) -> Workflow:
    """
    Constrói (sem treinar) um Workflow a partir da configuração efetiva.

    Args:
        config: Configuração resolvida (ex.: retorno de `load_config`).
        registry: Catálogo de modelos (default: `ModelRegistry.v1()`).

    Returns:
        Workflow: Workflow em estado EMPTY ou PARTIAL.

    Raises:
        InvalidWorkflowConfigError: Se a seção `workflow:` for inválida.
    """
    if not isinstance(config, dict):
        raise InvalidWorkflowConfigError(f"config deve ser dict, recebido: {type(config).__name__}")
    wf_cfg = config.get("workflow")
    if not isinstance(wf_cfg, dict):
        raise InvalidWorkflowConfigError("config não possui a seção 'workflow'")

    registry = registry or ModelRegistry.v1()

    pre_cfg = _section(wf_cfg, "preprocessor")
    model_cfg = _section(wf_cfg, "model")
    post_cfg = _section(wf_cfg, "postprocessor")

    # tudo é validado antes de tocar no Workflow
    preprocessor = _build_preprocessor(pre_cfg) if pre_cfg is not None else None
    model = _build_model(model_cfg, registry) if model_cfg is not None else None
    post = _build_postprocessor(post_cfg) if post_cfg is not None else None

    wf = Workflow()
    if preprocessor is not None:
        wf.add_preprocessor(preprocessor)
    if model is not None:
        wf.add_model(model, formula=model_cfg.get("formula"))  # type: ignore[union-attr]
    if post is not None:
        wf.add_postprocessor(
            post,
            calibration_prop=post_cfg.get("calibration_prop"),  # type: ignore[union-attr]
            seed=post_cfg.get("seed", 42),  # type: ignore[union-attr]
        )

    wf.events.log(level="info", message="workflow_built", config_hash=compute_config_hash(config))
    return wf


__all__ = ["build_workflow"]
