# tests/test_smoke.py
"""
Smoke test: o pacote importa e expõe a API pública mínima.

Não valida comportamento de domínio; existe como sentinela de integridade
do ambiente de testes.
"""


def test_smoke_public_api_is_importable():
    import atlas_workflows as aw

    assert aw.Workflow is not None
    assert callable(aw.linear_reg)
    assert "Workflow" in aw.__all__
