import json
import subprocess
import sys
from pathlib import Path

import yaml

from botcore.documents import DocumentType
from botcore.store import ConfigStore


def run_cli(config_dir, args):
    cmd = [sys.executable, "scripts/config_admin.py", "--config-dir", str(config_dir)] + args
    res = subprocess.run(cmd, capture_output=True, text=True)
    return res.returncode, res.stdout, res.stderr


def seed(config_dir: Path):
    store = ConfigStore(config_dir)
    store.save(DocumentType.ENGINE, {"engine": {
        "bot_id": "avro-707_1", "bot_name": "Avro 707",
        "emergency_stop_currency": "BTC", "trade_cycle_interval": 60,
    }})
    store.save(DocumentType.EXCHANGE, {"exchange": {
        "name": "Bitstamp", "adapter": "sample.ValidExchangeAdapter",
        "authentication_config": {"key": "your-api-key"},
    }})
    store.save(DocumentType.MARKETS, {"markets": []})
    store.save(DocumentType.STRATEGIES, {"strategies": []})
    store.save(DocumentType.EMAIL_ALERTS, {"email_alerts": {"enabled": True, "smtp_config": {
        "host": "smtp.host.example.com", "tls_port": 587, "account_username": "bxbot",
        "account_password": "secret123", "from_address": "bot@gazbert.net", "to_address": "ops@gazbert.net",
    }}})
    return store


def test_cli_validate(tmp_path: Path):
    seed(tmp_path)
    code, out, err = run_cli(tmp_path, ["validate"])
    assert code == 0, err
    assert "Config documents:" in out
    assert "email_alerts: OK" in out


def test_cli_validate_reports_failures(tmp_path: Path):
    store = seed(tmp_path)
    store.path_for(DocumentType.ENGINE).write_text("engine: {bot_id: x}\n")
    code, out, err = run_cli(tmp_path, ["validate"])
    assert code == 1
    assert "engine: FAILED" in out
    assert "exchange: OK" in out


def test_cli_show_hides_secrets(tmp_path: Path):
    seed(tmp_path)
    code, out, err = run_cli(tmp_path, ["show", "email_alerts"])
    assert code == 0, err
    shown = yaml.safe_load(out)
    assert shown["email_alerts"]["smtp_config"]["host"] == "smtp.host.example.com"
    assert "secret123" not in out

    code, out, err = run_cli(tmp_path, ["show", "exchange"])
    assert code == 0, err
    assert "your-api-key" not in out


def test_cli_show_missing_document(tmp_path: Path):
    code, out, err = run_cli(tmp_path, ["show", "engine"])
    assert code == 1
    assert "Error:" in err


def test_cli_export_schema(tmp_path: Path):
    out_file = tmp_path / "engine.schema.json"
    code, out, err = run_cli(tmp_path, ["export-schema", "engine", str(out_file)])
    assert code == 0, err
    assert "Wrote engine schema" in out
    schema = json.loads(out_file.read_text())
    assert schema["title"] == "EngineDocument"
