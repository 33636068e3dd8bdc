# src/atlas_workflows/core/__init__.py
"""
Core do Atlas Workflows.

Componentes principais:
    - workflow     → slots e contêiner Workflow (máquina de estados)
    - errors       → payloads canônicos de erro
    - exceptions   → exceções tipadas (conflito, especificação, não treinado, falha delegada)
    - traceability → EventLog estruturado por instância
    - config       → loader, merge, hashing e construção declarativa

Limites explícitos:
    - Não implementa encoding, steps de recipe nem numéricos de modelo
      (delegados a pandas / scikit-learn)
"""
