from types import SimpleNamespace

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from equitool.catalog.enums import Role
from equitool.gateway.clients import (
    GeminiReasoningClient,
    LangChainReasoningClient,
    UnconfiguredReasoningClient,
    message_text,
)
from equitool.gateway.errors import ServiceUnavailable
from equitool.gateway.schema import RESPONSE_SCHEMA
from equitool.types import ChatMessage, ContentPart, RequestPayload

from conftest import make_answer


def _payload(*parts: ContentPart) -> RequestPayload:
    return RequestPayload(
        system_instruction="You are a senior engineer.",
        parts=parts or (ContentPart(text="USER_INPUT_TO_CONVERT: \"CNMG 120408\""),),
        raw_input="CNMG 120408",
        input_kind="text",
        target_brand="Tungaloy",
    )


class _FakeStructured:
    def __init__(self, owner: "_FakeChatModel") -> None:
        self.owner = owner

    def invoke(self, messages):
        self.owner.invocations.append(messages)
        return self.owner.structured_result


class _FakeChatModel:
    def __init__(self, structured_result=None, reply: str = "") -> None:
        self.structured_result = structured_result
        self.reply = reply
        self.invocations: list = []
        self.structured_args: tuple = ()

    def with_structured_output(self, schema, **kwargs):
        self.structured_args = (schema, kwargs)
        return _FakeStructured(self)

    def invoke(self, messages):
        self.invocations.append(messages)
        return AIMessage(content=self.reply)


def test_langchain_generate_requests_json_schema_output() -> None:
    raw = AIMessage(
        content=[
            {
                "type": "text",
                "text": "{}",
                "annotations": [{"url": "https://tungaloy.example/t9225", "title": "T9225"}],
            }
        ]
    )
    fake = _FakeChatModel(
        structured_result={"raw": raw, "parsed": make_answer(), "parsing_error": None}
    )
    client = LangChainReasoningClient(model_factory=lambda model, temperature: fake)

    generation = client.generate("gpt-4o-mini", _payload(), RESPONSE_SCHEMA)

    schema, kwargs = fake.structured_args
    assert schema is RESPONSE_SCHEMA
    assert kwargs == {"method": "json_schema", "include_raw": True}
    assert generation.payload["confidenceScore"] == 92
    assert generation.sources == [{"uri": "https://tungaloy.example/t9225", "title": "T9225"}]
    system, human = fake.invocations[0]
    assert isinstance(system, SystemMessage)
    assert human.content == [{"type": "text", "text": "USER_INPUT_TO_CONVERT: \"CNMG 120408\""}]


def test_langchain_generate_sends_inline_image_and_pdf_blocks() -> None:
    fake = _FakeChatModel(structured_result={"raw": AIMessage(content=""), "parsed": None})
    client = LangChainReasoningClient(model_factory=lambda model, temperature: fake)
    payload = _payload(
        ContentPart(data="aGVsbG8=", mime_type="image/png"),
        ContentPart(data="JVBERi0=", mime_type="application/pdf"),
        ContentPart(text="LOOK at the attached image."),
    )

    generation = client.generate("gpt-4o", payload, RESPONSE_SCHEMA)

    image, pdf, text = fake.invocations[0][1].content
    assert image == {"type": "image_url", "image_url": {"url": "data:image/png;base64,aGVsbG8="}}
    assert pdf["type"] == "file" and pdf["data"] == "JVBERi0="
    assert text["text"] == "LOOK at the attached image."
    assert generation.payload is None
    assert generation.text == ""


def test_langchain_chat_maps_roles() -> None:
    fake = _FakeChatModel(reply="Use T9225.")
    client = LangChainReasoningClient(model_factory=lambda model, temperature: fake)
    history = [
        ChatMessage(id="1", role=Role.USER, text="context"),
        ChatMessage(id="2", role=Role.MODEL, text="ack"),
    ]

    reply = client.chat("gpt-4o-mini", "Be brief.", history, "Which grade?")

    assert reply == "Use T9225."
    messages = fake.invocations[0]
    assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]
    assert messages[-1].content == "Which grade?"


def test_langchain_uses_separate_resolve_and_chat_temperatures() -> None:
    fake = _FakeChatModel(
        structured_result={"raw": AIMessage(content=""), "parsed": make_answer()}, reply="ok"
    )
    requested: list[tuple[str, float]] = []

    def _factory(model: str, temperature: float) -> _FakeChatModel:
        requested.append((model, temperature))
        return fake

    client = LangChainReasoningClient(
        model_factory=_factory, temperature=0.0, chat_temperature=0.3
    )

    client.generate("gpt-4o-mini", _payload(), RESPONSE_SCHEMA)
    client.chat("gpt-4o", "Be brief.", [], "Which grade?")

    assert requested == [("gpt-4o-mini", 0.0), ("gpt-4o", 0.3)]


def _gemini_response(text: str, uris: list[str]):
    chunks = [SimpleNamespace(web=SimpleNamespace(uri=uri, title=None)) for uri in uris]
    candidate = SimpleNamespace(grounding_metadata=SimpleNamespace(grounding_chunks=chunks))
    return SimpleNamespace(text=text, parsed=None, candidates=[candidate])


class _FakeGenAI:
    def __init__(self, response=None, chat_reply: str = "") -> None:
        self.calls: list[dict] = []
        self.chat_calls: list[dict] = []
        self.models = SimpleNamespace(generate_content=self._generate_content)
        self.chats = SimpleNamespace(create=self._create_chat)
        self._response = response
        self._chat_reply = chat_reply

    def _generate_content(self, **kwargs):
        self.calls.append(kwargs)
        return self._response

    def _create_chat(self, **kwargs):
        self.chat_calls.append(kwargs)
        return SimpleNamespace(send_message=lambda message: SimpleNamespace(text=self._chat_reply))


def test_gemini_generate_uses_response_schema_without_grounding() -> None:
    fake = _FakeGenAI(response=_gemini_response('{"confidenceScore": 0}', []))
    client = GeminiReasoningClient(client=fake)

    generation = client.generate("gemini-2.5-flash", _payload(), RESPONSE_SCHEMA)

    config = fake.calls[0]["config"]
    assert config.response_mime_type == "application/json"
    assert config.response_schema is not None
    assert not config.tools
    assert generation.text == '{"confidenceScore": 0}'
    assert generation.payload is None


def test_gemini_grounding_collects_sources() -> None:
    fake = _FakeGenAI(response=_gemini_response("{}", ["https://a.example", "https://b.example"]))
    client = GeminiReasoningClient(client=fake, grounding=True)
    payload = _payload(
        ContentPart(data="aGVsbG8=", mime_type="image/jpeg"),
        ContentPart(text="LOOK at the attached image."),
    )

    generation = client.generate("gemini-2.5-pro", payload, RESPONSE_SCHEMA)

    config = fake.calls[0]["config"]
    assert config.tools and config.response_schema is None
    inline = fake.calls[0]["contents"][0].parts[0]
    assert inline.inline_data.data == b"hello"
    assert [s["uri"] for s in generation.sources] == ["https://a.example", "https://b.example"]


def test_gemini_chat_replays_history() -> None:
    fake = _FakeGenAI(chat_reply="Run 220 m/min.")
    client = GeminiReasoningClient(client=fake, temperature=0.0, chat_temperature=0.7)
    history = [ChatMessage(id="1", role=Role.USER, text="context")]

    reply = client.chat("gemini-2.5-flash", "Be brief.", history, "Speed?")

    assert reply == "Run 220 m/min."
    assert fake.chat_calls[0]["config"].temperature == 0.7
    sent_history = fake.chat_calls[0]["history"]
    assert sent_history[0].role == "user"
    assert sent_history[0].parts[0].text == "context"


def test_unconfigured_client_fails_every_call() -> None:
    client = UnconfiguredReasoningClient()

    with pytest.raises(ServiceUnavailable):
        client.generate("m", _payload(), RESPONSE_SCHEMA)
    with pytest.raises(ServiceUnavailable):
        client.chat("m", "", [], "hi")


def test_message_text_joins_text_blocks() -> None:
    message = AIMessage(content=[{"type": "text", "text": "a"}, {"type": "image"}, "b"])

    assert message_text(message) == "ab"
    assert message_text(None) == ""
