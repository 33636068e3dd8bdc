# tests/core/traceability/test_event_log.py
"""
Testes do EventLog estruturado.

Eventos são dicts com metadados mínimos (workflow_id, level, message, slot,
stage, timestamp UTC) e warnings são agrupados por slot.
"""

from datetime import datetime

from atlas_workflows.core.traceability import EventLog
from atlas_workflows.core.traceability.event_log import DEFAULT_MAX_EVENTS


def test_log_appends_structured_event_in_order():
    log = EventLog(workflow_id="wf-1")
    log.log(level="info", message="first")
    log.log(level="info", message="second", slot="model", stage="model.fit", n_rows=3)

    assert [e["message"] for e in log.events] == ["first", "second"]
    ev = log.events[1]
    assert ev["workflow_id"] == "wf-1"
    assert ev["slot"] == "model"
    assert ev["stage"] == "model.fit"
    assert ev["n_rows"] == 3
    assert datetime.fromisoformat(ev["timestamp"]).tzinfo is not None


def test_add_warning_groups_by_slot_and_logs_event():
    log = EventLog(workflow_id="wf-2")
    log.add_warning(slot="model", message="nothing to remove")
    log.add_warning(slot="model", message="again")

    assert log.warnings == {"model": ["nothing to remove", "again"]}
    assert [e["level"] for e in log.events] == ["warning", "warning"]


def test_find_filters_by_message():
    log = EventLog(workflow_id="wf-3")
    log.log(level="info", message="a")
    log.log(level="info", message="b")
    log.log(level="info", message="a")

    assert len(log.find(message="a")) == 2
    assert log.find(message="zzz") == []


def test_logs_are_isolated_per_instance():
    a = EventLog(workflow_id="a")
    b = EventLog(workflow_id="b")
    a.log(level="info", message="only-a")

    assert b.events == []
    assert b.warnings == {}


def test_log_keeps_only_the_most_recent_events():
    log = EventLog(workflow_id="wf-4", max_events=3)
    for i in range(5):
        log.log(level="info", message=f"e{i}")

    assert [e["message"] for e in log.events] == ["e2", "e3", "e4"]


def test_default_log_is_bounded():
    log = EventLog(workflow_id="wf-5")
    for i in range(DEFAULT_MAX_EVENTS + 10):
        log.log(level="info", message="predict")

    assert len(log.events) == DEFAULT_MAX_EVENTS
