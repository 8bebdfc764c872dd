import json
import logging

import pytest

from jobagent.__main__ import main
from jobagent.scheduling.tools import JobLog
from jobagent.utils import get_logger
from jobagent.utils.logger import JSONFormatter


def test_job_and_error_lines_are_collected():
    log = JobLog("Some job", job_run_id=7)
    log("kept")
    log.info("not kept")
    log.warning("not kept either")
    log.error("failed")
    log("also kept", "job")
    log.debug("debug")
    assert log.lines == ["kept", "failed", "also kept"]
    assert log.text() == "kept\nfailed\nalso kept"


def test_unknown_severity_is_rejected():
    with pytest.raises(ValueError):
        JobLog("x")("message", "fatal")


def test_cli_lists_jobs(capsys, monkeypatch):
    monkeypatch.setattr("jobagent.__main__.setup_logging", lambda **kwargs: None)
    assert main(["--log-file", "", "list"]) == 0
    out = capsys.readouterr().out.strip().splitlines()
    assert len(out) == 14
    assert any(line.startswith("MJProcessPurchases") for line in out)


def test_cli_exec_unknown_job(capsys, monkeypatch):
    monkeypatch.setattr("jobagent.__main__.setup_logging", lambda **kwargs: None)
    assert main(["--log-file", "", "exec", "No such job"]) == 2
    assert "Unknown job" in capsys.readouterr().err


def test_json_formatter_merges_structured_fields():
    logger = logging.getLogger("jobagent.test_formatter")
    record = logger.makeRecord(
        logger.name, logging.ERROR, __file__, 1, "Job failed", None, None,
        extra={"extra_data": {"job": "Process purchases", "job_run_id": 4}},
    )

    entry = json.loads(JSONFormatter().format(record))

    assert entry["level"] == "ERROR"
    assert entry["message"] == "Job failed"
    assert (entry["job"], entry["job_run_id"]) == ("Process purchases", 4)
    assert entry["timestamp"].endswith("Z")


def test_structured_logger_drops_empty_fields(caplog):
    with caplog.at_level(logging.INFO, logger="jobagent.audit"):
        get_logger("audit").info("changed", actor_id=None, job_run_id=3)

    assert caplog.records[-1].extra_data == {"job_run_id": 3}
