import pytest

from receipt_insights.core import settings


def test_read_config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "# receipt insights\n"
        "RECEIPTS_API_URL: http://backend.test  # local\n"
        "DISPLAY_CURRENCY: 'EUR'\n"
        "RECEIPTS_API_TOKEN: \"abc#123\"\n"
        "EMPTY:\n"
        "not a pair\n",
        encoding="utf-8",
    )

    assert settings.read_config_file(str(path)) == {
        "RECEIPTS_API_URL": "http://backend.test",
        "DISPLAY_CURRENCY": "EUR",
        "RECEIPTS_API_TOKEN": "abc#123",
    }


def test_read_missing_config_file(tmp_path):
    assert settings.read_config_file(str(tmp_path / "missing.yaml")) == {}
    assert settings.read_config_file(None) == {}


@pytest.mark.parametrize("raw,expected", [("12", 12), ("abc", 5), ("0", 5)])
def test_get_env_int(monkeypatch, raw, expected):
    monkeypatch.setenv("SOME_INT", raw)
    assert settings.get_env_int("SOME_INT", 5, min_value=1) == expected


def test_request_timeout_rejects_garbage(monkeypatch):
    monkeypatch.setenv("REQUEST_TIMEOUT", "soon")
    assert settings.request_timeout() == settings.DEFAULT_REQUEST_TIMEOUT


def test_api_base_url_strips_trailing_slash(monkeypatch):
    monkeypatch.setenv("RECEIPTS_API_URL", "http://backend.test/")
    assert settings.api_base_url() == "http://backend.test"


def test_profile_last_synced(monkeypatch):
    monkeypatch.setenv("PROFILE_LAST_SYNCED", "1700000000")
    assert settings.profile_last_synced() == 1700000000.0
    monkeypatch.setenv("PROFILE_LAST_SYNCED", "never")
    assert settings.profile_last_synced() is None


def test_secrets_are_masked():
    assert settings._mask_env_value("RECEIPTS_API_TOKEN", "supersecret") == "su...et"
    assert settings._mask_env_value("RECEIPTS_API_URL", "http://backend.test") == "http://backend.test"
