"""Tests for TextGenerationClient and SourceCollector."""

from __future__ import annotations

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from deep_think.domain.enums import Stage
from deep_think.domain.values import AgentConfig, AgentConfigBatch, Source
from deep_think.infrastructure.config import ModelStageConfig, SearchConfig
from deep_think.infrastructure.llm.router import ModelStageRouter
from deep_think.services.generation import TextGenerationClient, message_text
from deep_think.services.sources import SourceCollector
from tests.helpers.mock_llm import ScriptedChatModel, ScriptedModelFactory


def _cited_reply(_messages) -> AIMessage:
    return AIMessage(
        content=[
            {
                "type": "text",
                "text": "cited answer",
                "annotations": [
                    {"type": "url_citation", "url": "https://a.example", "title": "A"}
                ],
            }
        ],
        response_metadata={"model_provider": "openai"},
    )


def _client(model: ScriptedChatModel, model_name: str = "m", **router_kwargs) -> TextGenerationClient:
    router = ModelStageRouter(model_name, model_factory=ScriptedModelFactory(model), **router_kwargs)
    return TextGenerationClient(router)


class TestMessageText:

    def test_string_content(self) -> None:
        assert message_text(AIMessage(content="plain")) == "plain"

    def test_joins_text_blocks(self) -> None:
        msg = AIMessage(
            content=[
                {"type": "text", "text": "a"},
                {"type": "reasoning", "summary": []},
                {"type": "text", "text": "b"},
            ]
        )
        assert message_text(msg) == "ab"


class TestGenerate:

    @pytest.mark.asyncio
    async def test_prompt_only(self) -> None:
        model = ScriptedChatModel(responses=["hello"])
        text = await _client(model).generate(Stage.INITIAL, "say hi")
        assert text == "hello"
        assert len(model.calls[0]) == 1
        assert isinstance(model.calls[0][0], HumanMessage)

    @pytest.mark.asyncio
    async def test_history_with_system(self) -> None:
        model = ScriptedChatModel(responses=["revised"])
        await _client(model).generate(
            Stage.CORRECTION,
            messages=[("user", "problem"), ("assistant", "draft"), ("user", "fix it")],
            system="framing",
        )
        sent = model.calls[0]
        assert isinstance(sent[0], SystemMessage)
        assert [m.type for m in sent] == ["system", "human", "ai", "human"]
        assert sent[2].content == "draft"

    @pytest.mark.asyncio
    async def test_prompt_or_messages_required(self) -> None:
        model = ScriptedChatModel(responses=["x"])
        with pytest.raises(ValueError):
            await _client(model).generate(Stage.INITIAL)

    @pytest.mark.asyncio
    async def test_stage_routing(self) -> None:
        model = ScriptedChatModel(responses=["x"])
        factory = ScriptedModelFactory(model)
        router = ModelStageRouter("m", ModelStageConfig(summary="summarizer"), factory)
        await TextGenerationClient(router).generate(Stage.SUMMARY, "p")
        assert factory.requested == ["summarizer"]

    @pytest.mark.asyncio
    async def test_search_collects_sources(self) -> None:
        model = ScriptedChatModel(responder=_cited_reply)
        client = _client(model, "gpt-4.1", search=SearchConfig(enabled=True))
        text = await client.generate(Stage.INITIAL, "q", web_search=True)
        assert text == "cited answer"
        assert client.sources.snapshot() == (
            Source(url="https://a.example", title="A", content=""),
        )
        assert "tools" in model.call_kwargs[0]

    @pytest.mark.asyncio
    async def test_search_disabled_collects_nothing(self) -> None:
        model = ScriptedChatModel(responder=_cited_reply)
        client = _client(model, "gpt-4.1")
        await client.generate(Stage.INITIAL, "q", web_search=True)
        assert len(client.sources) == 0
        assert model.call_kwargs[0] == {}

    @pytest.mark.asyncio
    async def test_model_failure_propagates(self) -> None:
        model = ScriptedChatModel(responder=lambda msgs: TimeoutError("slow backend"))
        with pytest.raises(TimeoutError):
            await _client(model).generate(Stage.INITIAL, "q")


class TestGenerateStructured:

    @pytest.mark.asyncio
    async def test_returns_instance(self) -> None:
        batch = AgentConfigBatch(
            configs=[AgentConfig(agent_id="agent_01", approach="A", specific_prompt="Do A")]
        )
        model = ScriptedChatModel(structured_responses=[batch])
        result = await _client(model).generate_structured(Stage.AGENT_CONFIG, AgentConfigBatch, "p")
        assert result is batch

    @pytest.mark.asyncio
    async def test_dict_result_validated(self) -> None:
        model = ScriptedChatModel(
            structured_responses=[
                {"configs": [{"agentId": "agent_01", "approach": "A", "specificPrompt": "Do A"}]}
            ]
        )
        result = await _client(model).generate_structured(
            Stage.AGENT_CONFIG, AgentConfigBatch, [("user", "p")]
        )
        assert isinstance(result, AgentConfigBatch)
        assert result.configs[0].agent_id == "agent_01"

    @pytest.mark.asyncio
    async def test_unsupported_structured_output_raises(self) -> None:
        model = ScriptedChatModel(responses=["x"])
        with pytest.raises(NotImplementedError):
            await _client(model).generate_structured(Stage.AGENT_CONFIG, AgentConfigBatch, "p")


class TestSourceCollector:

    def test_append_only_no_dedup(self) -> None:
        src = Source(url="https://a.example", title="A")
        collector = SourceCollector()
        collector.extend([src])
        collector.extend([src])
        assert len(collector) == 2
        assert collector.snapshot() == (src, src)

    def test_merge_preserves_order(self) -> None:
        a = Source(url="https://a.example", title="A")
        b = Source(url="https://b.example", title="B")
        target = SourceCollector([a])
        target.merge(SourceCollector([b]))
        assert target.snapshot() == (a, b)

    def test_bool(self) -> None:
        collector = SourceCollector()
        assert not collector
        collector.extend([])
        assert not collector
        collector.extend([Source(url="https://a.example")])
        assert collector
