import pytest

from app.core.exceptions import ServiceException
from app.models.user import User
from app.monitoring.prometheus_metrics import (
    errors_total,
    service_operation_duration_seconds,
    service_operations_total,
)
from app.services.base import BaseService


class _TimedService(BaseService):
    @BaseService.measure_operation("timed_call")
    def timed_call(self, fail=False):
        if fail:
            raise RuntimeError("timed call failed")
        return "ok"


def _sample_value(metric, name, **labels):
    for family in metric.collect():
        for sample in family.samples:
            if sample.name == name and all(sample.labels.get(k) == v for k, v in labels.items()):
                return sample.value
    return 0.0


def test_measure_operation_records_outcomes(db):
    service = _TimedService(db)
    service.reset_metrics()

    assert service.timed_call() == "ok"
    with pytest.raises(RuntimeError):
        service.timed_call(fail=True)

    metrics = service.get_metrics()["timed_call"]
    assert metrics["count"] == 2
    assert metrics["success_rate"] == 0.5
    assert metrics["failure_count"] == 1

    service.reset_metrics()
    assert service.get_metrics() == {}


def test_measure_operation_exports_prometheus_metrics(db):
    labels = {"service": "_TimedService", "operation": "timed_call"}
    ok_before = _sample_value(
        service_operations_total, "fitbook_service_operations_total", status="success", **labels
    )
    err_before = _sample_value(
        service_operations_total, "fitbook_service_operations_total", status="error", **labels
    )
    runtime_before = _sample_value(
        errors_total, "fitbook_errors_total", error_type="RuntimeError", **labels
    )
    observed_before = _sample_value(
        service_operation_duration_seconds,
        "fitbook_service_operation_duration_seconds_count",
        **labels,
    )

    service = _TimedService(db)
    service.timed_call()
    with pytest.raises(RuntimeError):
        service.timed_call(fail=True)

    assert (
        _sample_value(
            service_operations_total,
            "fitbook_service_operations_total",
            status="success",
            **labels,
        )
        == ok_before + 1
    )
    assert (
        _sample_value(
            service_operations_total, "fitbook_service_operations_total", status="error", **labels
        )
        == err_before + 1
    )
    assert (
        _sample_value(errors_total, "fitbook_errors_total", error_type="RuntimeError", **labels)
        == runtime_before + 1
    )
    assert (
        _sample_value(
            service_operation_duration_seconds,
            "fitbook_service_operation_duration_seconds_count",
            **labels,
        )
        == observed_before + 2
    )


def test_transaction_wraps_database_errors(db, client_user):
    service = _TimedService(db)
    with pytest.raises(ServiceException):
        with service.transaction():
            db.add(User(email=client_user.email, name="Duplicate"))
    assert db.query(User).count() == 1
