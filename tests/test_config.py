import io
import json
import logging

import pytest
from pydantic import ValidationError

from civicportal.config import AppConfig, get_config
from civicportal.logger import StructuredLogger


class TestAppConfig:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = AppConfig()
        assert config.API_BASE_URL == "http://localhost:5000/api"
        assert config.OTP_LENGTH == 6
        assert config.OTP_TTL_SECONDS == 300
        assert config.LOGIN_PATH == "/login"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("API_BASE_URL", "https://portal.example.ph/api")
        monkeypatch.setenv("OTP_TTL_SECONDS", "120")
        config = AppConfig()
        assert config.API_BASE_URL == "https://portal.example.ph/api"
        assert config.OTP_TTL_SECONDS == 120

    def test_dotenv_file(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("LOCAL_DB_PATH=custom.db\n", encoding="utf-8")
        assert AppConfig().LOCAL_DB_PATH == "custom.db"

    def test_plain_http_remote_api_warns(self, monkeypatch, tmp_path, caplog):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("API_BASE_URL", "http://portal.example.ph/api")
        with caplog.at_level(logging.WARNING, logger="civicportal.config"):
            AppConfig()
        assert any("is not HTTPS" in record.getMessage() for record in caplog.records)

    def test_timeout_must_be_positive(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("API_TIMEOUT_S", "0")
        with pytest.raises(ValidationError):
            AppConfig()

    def test_salt_path_expands_home(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert AppConfig().token_salt_path == tmp_path / ".civicportal_token_salt"

    def test_get_config_is_cached(self):
        assert get_config() is get_config()


class TestStructuredLogger:
    def test_emits_json_with_extra_fields(self, tmp_path):
        stream = io.StringIO()
        log = StructuredLogger(
            name="civicportal.tests.json", stream=stream, log_file=str(tmp_path / "x.log"),
        )
        log.info("User logged out: %s", "u1", extra={"event": "LOGOUT"})

        entry = json.loads(stream.getvalue().splitlines()[-1])
        assert entry["message"] == "User logged out: u1"
        assert entry["level"] == "INFO"
        assert entry["logger_name"] == "civicportal.tests.json"
        assert entry["extra"]["event"] == "LOGOUT"

    def test_credentials_are_redacted(self, tmp_path):
        """Should never write passwords, codes or tokens to the log."""
        stream = io.StringIO()
        log = StructuredLogger(
            name="civicportal.tests.redact", stream=stream, log_file=str(tmp_path / "r.log"),
        )
        log.info(
            "Request body",
            extra={"password": "Secret123!", "refreshToken": "r-1", "otp": "123456", "user_id": "u1"},
        )

        line = stream.getvalue().splitlines()[-1]
        extra = json.loads(line)["extra"]
        assert extra["password"] == "[REDACTED]"
        assert extra["refreshToken"] == "[REDACTED]"
        assert extra["otp"] == "[REDACTED]"
        assert extra["user_id"] == "u1"
        assert "Secret123!" not in line

    def test_handlers_are_not_duplicated(self, tmp_path):
        first = StructuredLogger(name="civicportal.tests.dup", log_file=str(tmp_path / "a.log"))
        count = len(first.logger.handlers)
        StructuredLogger(name="civicportal.tests.dup", log_file=str(tmp_path / "a.log"))
        assert len(first.logger.handlers) == count
