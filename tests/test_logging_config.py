from pathlib import Path

from app.core.logging import build_logging_config


def test_log_files_live_under_configured_directory(tmp_path):
    config = build_logging_config(tmp_path, level="debug")
    handlers = config["handlers"]

    assert Path(handlers["service_file"]["filename"]) == tmp_path / "assessment.log"
    assert Path(handlers["error_file"]["filename"]) == tmp_path / "assessment-error.log"
    assert handlers["error_file"]["level"] == "ERROR"
    assert config["root"]["level"] == "DEBUG"


def test_client_package_logs_to_its_own_file(tmp_path):
    config = build_logging_config(tmp_path)
    proctoring = config["loggers"]["app.proctoring"]

    assert "proctoring_file" in proctoring["handlers"]
    assert proctoring["propagate"] is False
    assert Path(config["handlers"]["proctoring_file"]["filename"]) == tmp_path / "proctoring.log"
