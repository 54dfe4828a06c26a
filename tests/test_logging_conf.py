import logging

from keylens import logging_conf


def test_env_level(monkeypatch):
    monkeypatch.setenv("KEYLENS_LOG_LEVEL", "debug")
    assert logging_conf._env_level() == logging.DEBUG
    monkeypatch.setenv("KEYLENS_LOG_LEVEL", "bogus")
    assert logging_conf._env_level() is None
    monkeypatch.delenv("KEYLENS_LOG_LEVEL")
    assert logging_conf._env_level() is None


def test_configure_logging_writes_file(tmp_path, monkeypatch):
    root = logging.getLogger()
    saved = root.handlers[:], root.level
    monkeypatch.delenv("KEYLENS_LOG_LEVEL", raising=False)
    root.handlers = []
    try:
        log_file = tmp_path / "logs" / "keylens.log"
        logging_conf.configure_logging(logging.INFO, log_file)
        logging.getLogger("keylens.test").info("hello")
        for h in root.handlers:
            h.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")
    finally:
        for h in root.handlers:
            h.close()
        root.handlers, level = saved
        root.setLevel(level)


def test_notset_env_level_is_honored(tmp_path, monkeypatch):
    root = logging.getLogger()
    saved = root.handlers[:], root.level
    monkeypatch.setenv("KEYLENS_LOG_LEVEL", "NOTSET")
    assert logging_conf._env_level() == logging.NOTSET
    root.handlers = []
    try:
        logging_conf.configure_logging(logging.INFO, tmp_path / "keylens.log")
        assert root.level == logging.NOTSET
    finally:
        for h in root.handlers:
            h.close()
        root.handlers, level = saved
        root.setLevel(level)
