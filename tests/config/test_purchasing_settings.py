"""
Tests for purchasing settings loading.

Covers:
- Bundled defaults
- Path resolution (explicit path, POS_CONFIG_PATH, bundled file)
- Rejection of unknown keys, wrong types and invalid values
- POS_CONFIG_TRACE emission
"""

import pytest

from pos_config import CONFIG_PATH_ENV, get_active_config
from pos_config.loader import compute_checksum, parse_settings
from pos_config.schema import PurchasingSettings


def _write(tmp_path, text):
    path = tmp_path / "purchasing.yaml"
    path.write_text(text)
    return path


class TestBundledDefaults:

    def test_default_file_matches_dataclass_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_PATH_ENV, raising=False)

        assert get_active_config() == PurchasingSettings()

    def test_default_values(self):
        settings = PurchasingSettings()

        assert settings.po_number_prefix == "PO"
        assert settings.po_sequence_width == 4
        assert settings.money_decimal_places == 2
        assert settings.reorder_require_active_vendor is True
        assert settings.cancel_note_prefix == "CANCELLED"
        assert settings.default_page_size == 20
        assert settings.max_page_size == 100
        assert settings.conflict_retry_attempts == 3


class TestResolution:

    def test_explicit_path(self, tmp_path):
        path = _write(tmp_path, "purchasing:\n  po_number_prefix: PUR\n")

        settings = get_active_config(path)

        assert settings.po_number_prefix == "PUR"
        assert settings.po_sequence_width == 4

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "purchasing:\n  default_page_size: 50\n")
        monkeypatch.setenv(CONFIG_PATH_ENV, str(path))

        assert get_active_config().default_page_size == 50

    def test_top_level_keys_accepted(self):
        assert parse_settings({"max_page_size": 200}).max_page_size == 200

    def test_empty_file_gives_defaults(self, tmp_path):
        path = _write(tmp_path, "")

        assert get_active_config(path) == PurchasingSettings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")


class TestRejection:

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown purchasing settings: colour"):
            parse_settings({"purchasing": {"colour": "blue"}})

    @pytest.mark.parametrize(
        "key,value",
        [
            ("po_sequence_width", "4"),
            ("po_sequence_width", True),
            ("reorder_require_active_vendor", "yes"),
            ("po_number_prefix", 7),
        ],
    )
    def test_wrong_type(self, key, value):
        with pytest.raises(ValueError, match=key):
            parse_settings({"purchasing": {key: value}})

    @pytest.mark.parametrize(
        "section",
        [
            {"po_sequence_width": 0},
            {"po_number_prefix": "  "},
            {"default_page_size": 50, "max_page_size": 10},
            {"conflict_retry_attempts": 0},
            {"money_decimal_places": 9},
        ],
    )
    def test_invalid_value(self, section):
        with pytest.raises(ValueError, match="Invalid purchasing settings"):
            parse_settings({"purchasing": section})

    def test_non_mapping_document(self, tmp_path):
        path = _write(tmp_path, "- just\n- a list\n")

        with pytest.raises(ValueError, match="mapping"):
            get_active_config(path)


class TestTrace:

    def test_config_trace_logged(self, tmp_path, captured_logs):
        path = _write(tmp_path, "purchasing:\n  po_number_prefix: PUR\n")

        settings = get_active_config(path)

        traces = [r for r in captured_logs() if r["message"] == "POS_CONFIG_TRACE"]
        assert traces
        assert traces[-1]["config_path"] == str(path)
        assert traces[-1]["checksum"] == compute_checksum(settings.to_dict())

    def test_checksum_is_deterministic(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
