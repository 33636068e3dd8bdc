# tests/conftest.py
"""
Fixtures compartilhados para os testes do Atlas Workflows.

Fornecem datasets sintéticos, pequenos e determinísticos
(`numpy.random.default_rng` com semente fixa) para:
- regressão numérica (y ~ x1 + x2, com ruído baixo)
- regressão com coluna categórica
- classificação binária com classes "no" / "yes"

Invariantes:
    - Nenhuma fixture realiza I/O
    - O mesmo fixture sempre retorna os mesmos valores
    - Cada chamada retorna um DataFrame novo (testes podem mutá-lo)

Limites explícitos:
    - Não treinam workflows
    - Não representam dados reais
"""

import numpy as np
import pandas as pd
import pytest


def make_regression_frame(n: int, seed: int = 0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    x1 = rng.normal(0.0, 1.0, n)
    x2 = rng.uniform(-2.0, 2.0, n)
    y = 1.5 + 2.0 * x1 - 3.0 * x2 + rng.normal(0.0, 0.1, n)
    return pd.DataFrame({"x1": x1, "x2": x2, "y": y})


def make_classification_frame(n: int, seed: int = 0) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    x1 = rng.normal(10.0, 3.0, n)
    x2 = rng.normal(-5.0, 2.0, n)
    logits = 0.8 * (x1 - 10.0) - 0.6 * (x2 + 5.0)
    p = 1.0 / (1.0 + np.exp(-logits))
    y = np.where(rng.uniform(size=n) < p, "yes", "no")
    return pd.DataFrame({"x1": x1, "x2": x2, "y": y})


@pytest.fixture
def regression_train() -> pd.DataFrame:
    """100 linhas: y ≈ 1.5 + 2·x1 − 3·x2."""
    return make_regression_frame(100, seed=1)


@pytest.fixture
def regression_test() -> pd.DataFrame:
    """20 linhas novas, sem a coluna de outcome."""
    return make_regression_frame(20, seed=2).drop(columns=["y"])


@pytest.fixture
def categorical_train() -> pd.DataFrame:
    rng = np.random.default_rng(3)
    n = 60
    x1 = rng.normal(0.0, 1.0, n)
    group = np.array(["a", "b", "c"])[np.arange(n) % 3]
    effect = {"a": 0.0, "b": 5.0, "c": -5.0}
    y = x1 + np.array([effect[g] for g in group]) + rng.normal(0.0, 0.05, n)
    return pd.DataFrame({"x1": x1, "group": group, "y": y})


@pytest.fixture
def classification_train() -> pd.DataFrame:
    return make_classification_frame(200, seed=4)


@pytest.fixture
def classification_test() -> pd.DataFrame:
    return make_classification_frame(30, seed=5).drop(columns=["y"])
