import pytest

from botcore.documents import DocumentType
from botcore.logging_setup import REDACTED, clear_secrets, logger, redact, register_secret, setup_logging
from botcore.store import ConfigStore


@pytest.fixture(autouse=True)
def fresh_secrets():
    clear_secrets()
    yield
    clear_secrets()


@pytest.fixture
def captured():
    messages = []
    handler_id = logger.add(messages.append, format="{message}", level="DEBUG")
    yield messages
    logger.remove(handler_id)


def test_registered_secret_is_masked(captured):
    register_secret("hunter2-password")
    logger.info("connecting with hunter2-password to smtp")
    assert captured
    assert "hunter2-password" not in captured[-1]
    assert REDACTED in captured[-1]


def test_short_values_are_not_registered():
    register_secret("abc")
    register_secret(None)
    assert redact("abc def") == "abc def"


def test_longest_secret_wins():
    register_secret("secret")
    register_secret("secret123")
    assert redact("pw=secret123") == f"pw={REDACTED}"


def test_store_registers_loaded_secrets(tmp_path, captured):
    store = ConfigStore(tmp_path)
    store.save(DocumentType.EMAIL_ALERTS, {"email_alerts": {"enabled": True, "smtp_config": {
        "host": "smtp.host.example.com", "tls_port": 587, "account_username": "bxbot",
        "account_password": "secret123", "from_address": "bot@gazbert.net", "to_address": "ops@gazbert.net",
    }}})
    logger.warning("leaked secret123 somewhere")
    assert "secret123" not in captured[-1]


def test_setup_logging_creates_log_file(tmp_path):
    log_file = tmp_path / "logs" / "botcore.log"
    setup_logging(log_file=str(log_file), level="DEBUG", enable_console=False)
    try:
        register_secret("file-secret-value")
        logger.info("file-secret-value should not reach disk")
    finally:
        logger.remove()
    text = log_file.read_text()
    assert "should not reach disk" in text
    assert "file-secret-value" not in text
