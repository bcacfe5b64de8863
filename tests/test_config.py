"""Tests for configuration loading, validation and environment handling."""

from datetime import timedelta
from pathlib import Path

import pytest

from concoro.config import (
    AppConfig,
    ConfigurationError,
    EmailConfig,
    LinksConfig,
    NotificationsConfig,
    load_config,
    parse_app_config,
    validate_config_file,
)
from concoro.config.duration import DurationParseError, parse_duration, validate_duration_range
from concoro.config.environment import DEFAULT_DATABASE_URL, load_environment_config
from concoro.config.validators import check_for_warnings

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestConfigurationLoading:
    def test_load_valid_config(self, mock_env_vars):
        app_config, env_config = load_config(FIXTURES_DIR / "valid_config.yaml")

        assert app_config.schedule.hour == 9
        assert app_config.schedule.timezone == "Europe/Rome"
        assert app_config.notifications.thresholds == [7, 3, 1, 0]
        assert app_config.notifications.cooldown_delta == timedelta(hours=6)
        assert app_config.notifications.max_age_delta == timedelta(days=30)
        assert app_config.notifications.sort_users is True
        assert app_config.email.api_base_url == "https://api.brevo.com/v3"
        assert app_config.email.request_timeout == 20
        assert app_config.links.base_url == "https://concoro.it"
        assert app_config.profile_webhook.timeout == 15
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"

        assert env_config.brevo_api_key == "xkeysib-test"
        assert env_config.email_configured is True
        assert env_config.profile_webhook_url == "https://hooks.example.com/profile"
        assert env_config.environment == "test"

    def test_minimal_config_applies_production_defaults(self, mock_env_vars):
        app_config, _ = load_config(FIXTURES_DIR / "minimal_config.yaml")

        assert app_config.notifications.thresholds == [7, 3, 1, 0]
        assert app_config.notifications.emailable_days_left == [0, 1, 3, 7]
        assert app_config.notifications.digest_limit == 10
        assert app_config.notifications.cooldown_delta == timedelta(hours=6)
        assert app_config.notifications.max_age_delta is None
        assert app_config.email.sender_email == "notifiche@concoro.it"
        assert app_config.email.sender_name == "Concoro - Notifiche Concorsi"
        assert app_config.schedule.minute == 0

    def test_empty_file_means_defaults(self, tmp_path, mock_env_vars):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        app_config, _ = load_config(config_file)

        assert app_config == AppConfig()

    def test_config_file_not_found(self, mock_env_vars):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(Path("nonexistent.yaml"))

        assert "not found" in str(exc_info.value)

    def test_default_locations_searched(self, tmp_path, monkeypatch, mock_env_vars):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("schedule:\n  hour: 7\n")

        app_config, _ = load_config()

        assert app_config.schedule.hour == 7

    def test_no_config_anywhere(self, tmp_path, monkeypatch, mock_env_vars):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigurationError) as exc_info:
            load_config()

        assert len(exc_info.value.errors) == 2

    def test_invalid_yaml_syntax(self, tmp_path, mock_env_vars):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("notifications: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Failed to parse YAML"):
            load_config(config_file)

    def test_top_level_must_be_mapping(self, tmp_path, mock_env_vars):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="YAML mapping"):
            load_config(config_file)

    def test_invalid_config_lists_every_error(self, mock_env_vars):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "invalid_config.yaml")

        errors = "\n".join(exc_info.value.errors)
        assert "schedule -> hour" in errors
        assert "Unknown timezone" in errors
        assert "negative" in errors
        assert "cooldown" in errors
        assert "sender_email" in errors
        assert exc_info.value.suggestions

    def test_thresholds_must_overlap_emailable_days(self, mock_env_vars):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "no_overlap_config.yaml")

        assert "no digest would ever be sent" in str(exc_info.value)

    def test_suspicious_values_emit_warnings(self, mock_env_vars):
        with pytest.warns(UserWarning) as record:
            load_config(FIXTURES_DIR / "warnings_config.yaml")

        assert len(record) == 5


class TestModels:
    def test_duplicate_thresholds_rejected(self):
        with pytest.raises(ConfigurationError, match="unique"):
            parse_app_config({"notifications": {"thresholds": [3, 3]}})

    @pytest.mark.parametrize("cooldown", ["30s", "8d"])
    def test_cooldown_range(self, cooldown):
        with pytest.raises(ConfigurationError):
            parse_app_config({"notifications": {"cooldown": cooldown}})

    def test_sender_email_is_normalized(self):
        assert EmailConfig(sender_email="Notifiche@CONCORO.it").sender_email == "Notifiche@concoro.it"

    def test_api_base_url_must_be_http(self):
        with pytest.raises(ValueError):
            EmailConfig(api_base_url="ftp://api.brevo.com")

    def test_links(self):
        links = LinksConfig(base_url="https://staging.concoro.it/")

        assert links.concorso_url("abc") == "https://staging.concoro.it/bandi/abc"
        assert links.notifications_url == "https://staging.concoro.it/notifiche"
        assert links.settings_url == "https://staging.concoro.it/settings"

    def test_schedule_tzinfo(self):
        assert AppConfig().schedule.tzinfo().key == "Europe/Rome"

    def test_max_age_must_parse(self):
        with pytest.raises(ValueError):
            NotificationsConfig(max_age="forever")


class TestValidators:
    def test_clean_config_has_no_warnings(self):
        assert check_for_warnings({}) == []

    def test_detects_each_suspicious_value(self):
        messages = check_for_warnings(
            {
                "notifications": {
                    "thresholds": [7, 3, 1, 0],
                    "emailable_days_left": [0, 1, 2],
                    "cooldown": "30m",
                    "digest_limit": 50,
                },
                "profile_webhook": {"enabled": False},
            }
        )

        joined = "\n".join(messages)
        assert "no threshold creates: 2" in joined
        assert "never emailed: 3, 7" in joined
        assert "Short cooldown" in joined
        assert "Large digest_limit" in joined
        assert "webhook is disabled" in joined

    def test_validate_config_file(self, capsys):
        assert validate_config_file(FIXTURES_DIR / "valid_config.yaml") is True
        assert "✓" in capsys.readouterr().out

        assert validate_config_file(FIXTURES_DIR / "invalid_config.yaml") is False
        assert "✗" in capsys.readouterr().out


class TestDurationParsing:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("6h", 21600),
            ("30m", 1800),
            ("1h30m", 5400),
            ("2d", 172800),
            ("45s", 45),
            ("PT6H", 21600),
            ("PT1H30M", 5400),
            ("P1D", 86400),
        ],
    )
    def test_valid_durations(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", "6", "6x", "h6", "P", "PT", "0h", "PT0S", "six hours"])
    def test_invalid_durations(self, value):
        with pytest.raises(DurationParseError):
            parse_duration(value)

    def test_range_validation(self):
        validate_duration_range(3600, min_seconds=60, max_seconds=86400)

        with pytest.raises(DurationParseError, match="too short"):
            validate_duration_range(30, min_seconds=60, max_seconds=86400)
        with pytest.raises(DurationParseError, match="too long"):
            validate_duration_range(90000, min_seconds=60, max_seconds=86400)


class TestEnvironment:
    def test_all_variables_optional(self, clean_env):
        env = load_environment_config()

        assert env.brevo_api_key == ""
        assert env.email_configured is False
        assert env.database_url == DEFAULT_DATABASE_URL
        assert env.profile_webhook_url is None
        assert env.environment == "local"
        assert env.log_level is None

    def test_log_level_is_upper_cased(self, clean_env, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert load_environment_config().log_level == "DEBUG"

    def test_invalid_values_are_collected(self, clean_env, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        monkeypatch.setenv("PROFILE_WEBHOOK_URL", "hooks.example.com")
        monkeypatch.setenv("DATABASE_URL", "concoro.db")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 3


class TestConfigurationError:
    def test_message_renders_errors_and_suggestions(self):
        error = ConfigurationError("Broken", errors=["first"], suggestions=["fix it"])
        error.add_error("second")
        error.add_suggestion("try again")

        text = str(error)
        assert text.startswith("Broken")
        assert "1. first" in text
        assert "2. second" in text
        assert "- try again" in text
