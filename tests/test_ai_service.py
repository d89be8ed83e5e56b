import pytest

from horizon.app.ai.providers.groq_provider import GroqProvider
from horizon.app.ai.service import AIService
from horizon.app.ai.types import AIContent, AIProvider, ProviderError, merge_context, parse_image_data_url


class StubProvider(AIProvider):
    def __init__(self, name, fail=False):
        self.name = name
        self.fail = fail
        self.calls = 0

    def generate_text(self, prompt, history=None, context=None, image=None, system_instruction=None):
        return f"{self.name}: {prompt}"

    def stream_text(self, prompt, history=None, context=None, image=None, system_instruction=None):
        yield self.name

    def analyze_image(self, image, prompt):
        self.calls += 1
        if self.fail:
            raise ProviderError(self.name, "down")
        return f"{self.name} saw it"


def _service(groq_fails=False, gemini_fails=False):
    groq = StubProvider("groq", fail=groq_fails)
    gemini = StubProvider("gemini", fail=gemini_fails)
    return AIService(providers={"groq": groq, "gemini": gemini}), groq, gemini


def test_default_provider_and_unknown_provider():
    service, _, _ = _service()
    assert service.generate_text("hi") == "gemini: hi"
    with pytest.raises(ProviderError, match="Unknown AI provider"):
        service.get_provider("openai")


def test_image_analysis_falls_back_to_other_provider():
    service, groq, gemini = _service(groq_fails=True)
    assert service.analyze_image("data:image/png;base64,AA==", "what?", "groq") == "gemini saw it"
    assert (groq.calls, gemini.calls) == (1, 1)


def test_image_analysis_reraises_first_error():
    service, _, _ = _service(groq_fails=True, gemini_fails=True)
    with pytest.raises(ProviderError, match="groq: down"):
        service.analyze_image("data:image/png;base64,AA==", "what?", "groq")


def test_parse_image_data_url():
    assert parse_image_data_url("data:image/webp;base64,aGk=", "groq") == ("image/webp", b"hi")
    with pytest.raises(ProviderError, match="Invalid image format"):
        parse_image_data_url("https://example.com/cat.png", "groq")
    with pytest.raises(ProviderError, match="Failed to extract"):
        parse_image_data_url("data:image/png;base64,", "groq")


def test_merge_context():
    assert merge_context("q", None) == "q"
    assert merge_context("q", "ctx") == "ctx\n\nUser Query: q"


def test_groq_messages_map_roles_and_system_instruction():
    history = [AIContent(role="user", text="hi"), AIContent(role="model", text="hello")]
    messages = GroqProvider()._messages("next", history, "ctx", system_instruction="be brief")

    assert messages == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "user", "content": "ctx\n\nUser Query: next"},
    ]


def test_groq_requires_key(monkeypatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    with pytest.raises(ProviderError, match="GROQ_API_KEY"):
        GroqProvider().generate_text("hi")
