import pytest

from hrm_system.config import get_settings_module


@pytest.mark.parametrize(
    "env, expected",
    [
        ("production", "hrm_system.config.production"),
        ("PROD", "hrm_system.config.production"),
        ("testing", "hrm_system.config.testing"),
        ("test", "hrm_system.config.testing"),
        ("staging", "hrm_system.config.development"),
    ],
)
def test_settings_module_follows_app_env(monkeypatch, env, expected):
    monkeypatch.setenv("APP_ENV", env)
    assert get_settings_module() == expected


def test_development_is_the_default(monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)
    assert get_settings_module() == "hrm_system.config.development"
