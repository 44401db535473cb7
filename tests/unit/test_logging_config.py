import logging

from stockaudit.core.logging import log_user_action
from stockaudit.core.logging_config import build_logging_config, setup_logging


def test_config_routes_audit_trail_to_its_own_file(tmp_path):
    config = build_logging_config(str(tmp_path), "DEBUG")

    assert config["loggers"]["stockaudit.audit_trail"]["handlers"] == ["audit_file"]
    assert config["handlers"]["audit_file"]["filename"].startswith(str(tmp_path / "audit"))
    assert config["handlers"]["console"]["level"] == "DEBUG"
    assert config["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"


def test_setup_logging_writes_audit_trail(tmp_path):
    setup_logging(log_dir=str(tmp_path), level="info")
    try:
        log_user_action(7, "finalize", "audit_count", 3, unclassified=2)
        for handler in logging.getLogger("stockaudit.audit_trail").handlers:
            handler.flush()

        audit_files = list((tmp_path / "audit").iterdir())
        assert len(audit_files) == 1
        assert "user=7 action=finalize target=audit_count 3 unclassified=2" in audit_files[0].read_text()
        for sub_dir in ("app", "error", "access", "audit"):
            assert (tmp_path / sub_dir).is_dir()
    finally:
        for name in ("", "access", "uvicorn.access", "stockaudit.audit_trail", "sqlalchemy.engine"):
            target = logging.getLogger(name)
            for handler in list(target.handlers):
                target.removeHandler(handler)
                handler.close()
