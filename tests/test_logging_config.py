"""Tests for structured logging."""

import json
import logging

from casegraph.logging_config import (
    StructuredFormatter,
    Timer,
    get_audit_logger,
    log_context,
    setup_logging,
)


def make_record(**extra):
    record = logging.LogRecord(
        name="casegraph.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="graph_build",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_formats_json_with_extra_fields(self):
        output = json.loads(StructuredFormatter().format(make_record(nodes=7)))

        assert output["message"] == "graph_build"
        assert output["level"] == "INFO"
        assert output["nodes"] == 7

    def test_includes_log_context(self):
        with log_context(case_id="case-7"):
            output = json.loads(StructuredFormatter().format(make_record()))
        assert output["case_id"] == "case-7"

        output = json.loads(StructuredFormatter().format(make_record()))
        assert "case_id" not in output


def test_setup_logging_sets_level(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log_file = tmp_path / "casegraph.log"

    setup_logging(format="json", level="WARNING", log_file=str(log_file))
    try:
        assert root.level == logging.WARNING
        assert len(root.handlers) == 2
        logging.getLogger("casegraph.test").warning("layout_stopped")
        for handler in root.handlers:
            handler.flush()
        assert json.loads(log_file.read_text().splitlines()[0])["message"] == "layout_stopped"
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_audit_events_reach_configured_handlers(tmp_path, capsys):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log_file = tmp_path / "audit.log"

    setup_logging(format="json", level="INFO", log_file=str(log_file))
    try:
        get_audit_logger().info("alias_unmerge", variant="ShadowCorp", previous_target="Shadow Corp")
        for handler in root.handlers:
            handler.flush()
        record = json.loads(log_file.read_text().splitlines()[0])
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)

    assert record["logger"] == "casegraph.audit"
    assert record["message"] == "alias_unmerge"
    assert record["variant"] == "ShadowCorp"
    assert record["previous_target"] == "Shadow Corp"
    assert capsys.readouterr().out == ""


def test_timer_measures_duration():
    with Timer() as timer:
        sum(range(1000))
    assert timer.duration_ms >= 0
