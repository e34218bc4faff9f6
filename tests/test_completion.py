from types import SimpleNamespace

import openai
import pytest
import requests

from resume_screener.analysis import AnalysisParser
from resume_screener.bootstrap import build_context
from resume_screener.completion import (
    HttpCompletionService,
    MockCompletionService,
    OpenAICompletionService,
    get_completion_service,
    heuristic_analysis,
)
from resume_screener.config import CompletionSettings, Settings
from resume_screener.errors import ConfigurationError, ScoringError


class FakeResponse:
    def __init__(self, payload=None, status=200, bad_json=False):
        self.payload = payload
        self.status = status
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} Server Error")

    def json(self):
        if self.bad_json:
            raise ValueError("Expecting value")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


def _settings(**overrides):
    values = dict(api_key="sk-test", base_url="https://llm.example/v1/", timeout_seconds=5)
    values.update(overrides)
    return CompletionSettings(**values)


def test_http_service_posts_chat_completion():
    session = FakeSession(FakeResponse({"choices": [{"message": {"content": '  {"overallScore": 70}  '}}]}))
    service = HttpCompletionService(_settings(), session=session)

    assert service.complete("prompt text") == '{"overallScore": 70}'

    url, kwargs = session.calls[0]
    assert url == "https://llm.example/v1/chat/completions"
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
    assert kwargs["json"]["messages"][1] == {"role": "user", "content": "prompt text"}
    assert kwargs["timeout"] == 5


@pytest.mark.parametrize("session", [
    FakeSession(error=requests.Timeout("read timeout")),
    FakeSession(error=requests.ConnectionError("refused")),
    FakeSession(FakeResponse(status=503)),
    FakeSession(FakeResponse(bad_json=True)),
    FakeSession(FakeResponse({"choices": []})),
    FakeSession(FakeResponse({"error": "quota"})),
])
def test_http_failures_raise_scoring_error(session):
    with pytest.raises(ScoringError):
        HttpCompletionService(_settings(), session=session).complete("p")
    assert len(session.calls) == 1


class FakeCompletions:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.result


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_openai_service_returns_message_content():
    message = SimpleNamespace(content=" done ")
    completions = FakeCompletions(SimpleNamespace(choices=[SimpleNamespace(message=message)]))
    service = OpenAICompletionService(_settings(model="gpt-test"), client=_client(completions))

    assert service.complete("p") == "done"
    assert completions.kwargs["model"] == "gpt-test"
    assert completions.kwargs["messages"][0]["role"] == "system"


def test_openai_errors_become_scoring_errors():
    service = OpenAICompletionService(_settings(), client=_client(FakeCompletions(error=openai.OpenAIError("boom"))))
    with pytest.raises(ScoringError):
        service.complete("p")


def test_openai_empty_choices():
    service = OpenAICompletionService(_settings(), client=_client(FakeCompletions(SimpleNamespace(choices=[]))))
    with pytest.raises(ScoringError):
        service.complete("p")


def test_openai_client_is_built_without_retries():
    service = OpenAICompletionService(_settings())
    assert service.client.max_retries == 0


def test_mock_replays_then_falls_back():
    mock = MockCompletionService(["first", ValueError("scripted")])
    assert mock.complete("a") == "first"
    with pytest.raises(ValueError):
        mock.complete("b")
    assert AnalysisParser().parse(mock.complete("Required Skills: Java\nSkills: Java")).overall_score >= 0
    assert mock.calls == 3


def test_mock_without_fallback_runs_dry():
    with pytest.raises(RuntimeError):
        MockCompletionService(fallback=None).complete("p")


def test_heuristic_scores_skill_overlap():
    prompt = (
        "Required Skills: Java, SQL, AWS, Docker\n"
        "Skills: java, SQL\n"
        "Total Experience: 2 years\n"
        "Education: Not specified\n"
    )
    parsed = AnalysisParser().parse(heuristic_analysis(prompt))
    assert parsed.skill_match_score == 50
    assert parsed.experience_match_score == 70
    assert parsed.education_match_score == 50
    assert parsed.matched_skills == ["Java", "SQL"]
    assert parsed.missing_skills == ["AWS", "Docker"]
    # 0.40*50 + 0.35*70 + 0.25*50 = 57
    assert parsed.overall_score == 57


@pytest.mark.parametrize("provider,api_key,expected", [
    ("mock", "sk-test", MockCompletionService),
    ("mock", "", MockCompletionService),
    ("http", "sk-test", HttpCompletionService),
    ("http", "", HttpCompletionService),
    ("openai", "sk-test", OpenAICompletionService),
    ("OpenAI", "sk-test", OpenAICompletionService),
])
def test_get_completion_service(provider, api_key, expected):
    assert isinstance(get_completion_service(_settings(provider=provider, api_key=api_key)), expected)


def test_unknown_provider():
    with pytest.raises(ConfigurationError):
        get_completion_service(_settings(provider="carrier-pigeon"))


def test_openai_without_key_fails_at_startup():
    with pytest.raises(ConfigurationError):
        get_completion_service(_settings(provider="openai", api_key=""))


def test_context_without_key_does_not_fall_back_to_offline_scores(tmp_path):
    settings = Settings(completion=_settings(provider="openai", api_key=""), reports_dir=tmp_path)
    with pytest.raises(ConfigurationError):
        build_context(settings)


def test_http_without_key_sends_no_authorization_header():
    session = FakeSession(FakeResponse({"choices": [{"message": {"content": "ok"}}]}))
    settings = _settings(provider="http", api_key="", base_url="http://localhost:11434/v1")
    service = get_completion_service(settings)
    service.session = session

    assert service.complete("p") == "ok"
    url, kwargs = session.calls[0]
    assert url == "http://localhost:11434/v1/chat/completions"
    assert "Authorization" not in kwargs["headers"]
