import logging

import pytest

from sedori.compliance.checker import ProductComplianceChecker
from sedori.compliance.models import ProductModel
from sedori.observability import (
    EVENT_LOGGER_NAME,
    bind_run_id,
    check_run,
    current_run_id,
    log_event,
    reset_run_id,
)


def test_check_run_is_scoped():
    assert current_run_id() is None
    with check_run("run-1") as run_id:
        assert run_id == "run-1"
        assert current_run_id() == "run-1"
    assert current_run_id() is None


def test_check_run_generates_ids_and_resets_on_error():
    with check_run() as first:
        pass
    with check_run() as second:
        pass
    assert first and second and first != second

    with pytest.raises(RuntimeError):
        with check_run("run-err"):
            raise RuntimeError("boom")
    assert current_run_id() is None


def test_binding_none_is_a_no_op():
    token = bind_run_id(None)
    assert token is None
    reset_run_id(token)
    assert current_run_id() is None


def test_log_event_attaches_run_id(caplog):
    with check_run("run-2"):
        with caplog.at_level(logging.INFO, logger=EVENT_LOGGER_NAME):
            log_event("compliance.check.completed", status="compliant")

    record = caplog.records[-1]
    assert record.name == EVENT_LOGGER_NAME
    assert record.getMessage() == "compliance.check.completed"
    assert record.payload == {
        "event": "compliance.check.completed",
        "run_id": "run-2",
        "status": "compliant",
    }


def test_complete_check_event_carries_record_run_id(caplog, now):
    with caplog.at_level(logging.INFO, logger=EVENT_LOGGER_NAME):
        record = ProductComplianceChecker().perform_complete_check(
            ProductModel(product_id="p-obs", name="New Bluetooth Speaker"), "user-1", now=now
        )

    events = [r for r in caplog.records if r.name == EVENT_LOGGER_NAME]
    assert events[-1].payload["run_id"] == record.metadata["run_id"]
    assert events[-1].payload["check_id"] == record.check_id
    assert current_run_id() is None
