"""
Rastreabilidade dos workflows.

Expõe o `EventLog`, o log estruturado que cada Workflow carrega consigo.
"""

from .event_log import EventLog

__all__ = ["EventLog"]
