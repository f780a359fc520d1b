import json

from redeployer.services.report import RunReport


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def warning(self, message, *args):
        self.warnings.append(message % args)


def test_report_is_written_after_each_change(tmp_path):
    path = tmp_path / "reports" / "last-run.json"
    report = RunReport(str(path), logger=DummyLogger())

    report.begin("run-123", {"container_name": "app", "port": 8080})
    report.begin_step("pull_image")
    assert json.loads(path.read_text(encoding="utf-8"))["steps"][0]["status"] == "running"

    report.end_step("success")
    report.mark_backup_created()
    report.finish("committed", succeeded=True)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["run_id"] == "run-123"
    assert data["status"] == "success"
    assert data["outcome"] == "committed"
    assert data["target"]["container_name"] == "app"
    assert data["backup_created"] is True
    assert data["steps"][0]["name"] == "pull_image"
    assert data["steps"][0]["status"] == "success"
    assert data["steps"][0]["seconds"] >= 0
    assert not (tmp_path / "reports" / "last-run.json.tmp").exists()


def test_failed_step_error_is_recorded(tmp_path):
    path = tmp_path / "report.json"
    report = RunReport(str(path), logger=DummyLogger())

    report.begin("run-9", {})
    report.begin_step("acquire_lock")
    report.end_step("failed", error="lock held")
    report.finish("failed", succeeded=False, error="lock held")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["steps"][0]["error"] == "lock held"
    assert data["status"] == "failed"
    assert data["error"] == "lock held"


def test_report_without_path_stays_in_memory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    report = RunReport(None, logger=DummyLogger())

    report.begin("run-1", {})
    report.finish("committed", succeeded=True)

    assert report.data["outcome"] == "committed"
    assert list(tmp_path.iterdir()) == []


def test_unwritable_report_only_warns(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    logger = DummyLogger()
    report = RunReport(str(blocker / "report.json"), logger=logger)

    report.begin("run-2", {})

    assert report.data["run_id"] == "run-2"
    assert logger.warnings
