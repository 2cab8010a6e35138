"""Tests for the console runtime."""

from typing import Iterable, List

import pytest

from chatgraph.core.agent.chat import ChatAgent, ChatOutput
from chatgraph.core.config import LLMConfig
from chatgraph.core.errors import ProviderError
from chatgraph.core.runtime import LocalRuntime, RuntimeConfig
from chatgraph.core.tools import HumanAssistanceTool

from fakes import EchoTool, ScriptedProvider, ask_human, reply, tool_request


class Console:
    """Scripted stdin and captured stdout."""

    def __init__(self, lines: Iterable[str]) -> None:
        self.lines = list(lines)
        self.prompts: List[str] = []
        self.output: List[str] = []

    def input(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)

    def print(self, *values) -> None:
        self.output.append(" ".join(str(value) for value in values))


@pytest.fixture
def agent(settings, store, provider: ScriptedProvider) -> ChatAgent:
    return ChatAgent(settings, store, lambda config, settings: provider, tools=[EchoTool, HumanAssistanceTool])


def runtime_for(agent: ChatAgent, console: Console, **config) -> LocalRuntime:
    return LocalRuntime(agent, RuntimeConfig(**config), input_func=console.input, output_func=console.print)


class TestLocalRuntime:
    """Test the console chat loop."""

    @pytest.mark.asyncio
    async def test_conversation(self, agent: ChatAgent, provider: ScriptedProvider):
        provider.queue(reply("Hi!"), reply("Still here."))
        console = Console(["Hello", "   ", "Are you there?", "exit"])

        await runtime_for(agent, console).start()

        assert console.output == ["\nAssistant: Hi!", "\nAssistant: Still here."]
        # Both turns share the session's thread
        second_history = provider.calls[1]["messages"]
        assert [message.role for message in second_history] == ["system", "human", "ai", "human"]

    @pytest.mark.asyncio
    async def test_human_assistance_prompt(self, agent: ChatAgent, provider: ScriptedProvider):
        provider.queue(
            tool_request(ask_human("h1", "Delete all drafts?", context="12 drafts", options=["yes", "no"])),
            reply("Drafts deleted."),
        )
        console = Console(["Clean up my drafts", "", "yes", "quit"])

        await runtime_for(agent, console).start()

        assert console.prompts.count("Human: ") == 2
        assert "Delete all drafts?" in console.output
        assert "Context: 12 drafts" in console.output
        assert "Options: yes, no" in console.output
        assert console.output[-1] == "\nAssistant: Drafts deleted."
        assert provider.calls[-1]["messages"][-1].content == "yes"

    @pytest.mark.asyncio
    async def test_errors_do_not_end_session(self, agent: ChatAgent, provider: ScriptedProvider):
        provider.queue(ProviderError("unreachable"), reply("Back online."))
        console = Console(["first", "second"])

        runtime = runtime_for(agent, console)
        await runtime.start()

        assert console.output[0] == "\n[Error] unreachable"
        assert console.output[1] == "\nAssistant: Back online."
        assert runtime.current_session is None

    @pytest.mark.asyncio
    async def test_process_message_uses_config(self, agent: ChatAgent, provider: ScriptedProvider):
        provider.queue(reply("ok"))
        runtime = LocalRuntime(agent, RuntimeConfig(llm=LLMConfig(temperature=0.1), extra_context="Speak French"))

        result = await runtime.process_message("Bonjour")

        assert isinstance(result, ChatOutput)
        assert result.metadata.thread_id == runtime.current_session.id
        assert "Speak French" in provider.calls[0]["messages"][0].content
