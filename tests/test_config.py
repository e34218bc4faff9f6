import pytest

from resume_screener.config import SETTINGS_PATH, load_settings

_ENV = (
    "COMPLETION_PROVIDER", "OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL",
    "COMPLETION_TIMEOUT", "CACHE_ENABLED", "SCREENING_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV:
        monkeypatch.delenv(key, raising=False)


def test_shipped_settings_file_loads():
    settings = load_settings(SETTINGS_PATH)
    assert settings.completion.provider == "openai"
    assert settings.completion.model == "gpt-4o-mini"
    assert settings.cache_enabled is True
    assert settings.top_candidates_limit == 10


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "absent.yaml")
    assert settings.completion.timeout_seconds == 60.0
    assert settings.completion.api_key == ""


def test_yaml_values(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "completion:\n"
        "  provider: http\n"
        "  model: llama-3.1-8b-instant\n"
        "  timeout_seconds: 12\n"
        "  mock_responses: ['{\"overallScore\": 1}']\n"
        "cache_enabled: false\n"
        "top_candidates_limit: 3\n"
        f"reports_dir: {tmp_path / 'out'}\n",
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.completion.provider == "http"
    assert settings.completion.model == "llama-3.1-8b-instant"
    assert settings.completion.timeout_seconds == 12.0
    assert settings.completion.mock_responses == ['{"overallScore": 1}']
    assert settings.cache_enabled is False
    assert settings.top_candidates_limit == 3
    assert settings.reports_dir == tmp_path / "out"


def test_environment_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text("completion:\n  provider: http\ncache_enabled: true\n", encoding="utf-8")
    monkeypatch.setenv("COMPLETION_PROVIDER", "MOCK")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-env")
    monkeypatch.setenv("COMPLETION_TIMEOUT", "7.5")
    monkeypatch.setenv("CACHE_ENABLED", "no")

    settings = load_settings(path)

    assert settings.completion.provider == "mock"
    assert settings.completion.api_key == "sk-env"
    assert settings.completion.model == "gpt-env"
    assert settings.completion.timeout_seconds == 7.5
    assert settings.cache_enabled is False


def test_settings_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "alt.yaml"
    path.write_text("top_candidates_limit: 4\n", encoding="utf-8")
    monkeypatch.setenv("SCREENING_CONFIG", str(path))
    assert load_settings().top_candidates_limit == 4


def test_non_mapping_yaml_is_rejected(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)
