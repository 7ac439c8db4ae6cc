from sqlalchemy.exc import OperationalError

from storelens.db.model import ProcessingStatus
from storelens.repository import processing_log_repo
from storelens.services.processing_log import ProcessingLog, truncate_error


def _broken_factory():
    raise OperationalError("SELECT 1", {}, Exception("database is down"))


def _entry(session_factory, log_id):
    with session_factory() as s:
        return processing_log_repo.get_entry(s, log_id)


def test_lifecycle_received_processing_completed(session_factory, tenant):
    log = ProcessingLog(session_factory)
    log_id = log.open(tenant.id, "orders/create", '{"id": 1}')

    entry = _entry(session_factory, log_id)
    assert entry.status is ProcessingStatus.RECEIVED
    assert entry.raw_payload == '{"id": 1}'
    assert entry.event_topic == "orders/create"

    log.start(log_id)
    assert _entry(session_factory, log_id).status is ProcessingStatus.PROCESSING

    log.complete(log_id)
    entry = _entry(session_factory, log_id)
    assert entry.status is ProcessingStatus.COMPLETED
    assert entry.error_message is None


def test_fail_records_truncated_error(session_factory, tenant):
    log = ProcessingLog(session_factory)
    log_id = log.open(tenant.id, "orders/create", "{}")
    log.fail(log_id, "x" * 5000)

    entry = _entry(session_factory, log_id)
    assert entry.status is ProcessingStatus.FAILED
    assert len(entry.error_message) == 2001
    assert entry.error_message.endswith("…")


def test_truncate_error_keeps_short_messages():
    assert truncate_error("short") == "short"
    assert truncate_error("abcdef", limit=3) == "abc…"


def test_storage_failures_are_swallowed():
    log = ProcessingLog(_broken_factory)
    assert log.open(None, "orders/create", "{}") is None
    # 不抛异常即可
    log.start(1)
    log.complete(1)
    log.fail(1, "boom")


def test_none_log_id_is_a_noop(session_factory):
    log = ProcessingLog(session_factory)
    log.start(None)
    log.complete(None)
    log.fail(None, "ignored")


def test_unknown_log_id_does_not_raise(session_factory):
    ProcessingLog(session_factory).complete(424242)
