"""Model provider client.

The graph talks to language models through the ``ModelProvider`` protocol:
``invoke(messages, tools) -> ModelResponse``. ``MirascopeProvider`` implements
it with Mirascope's provider call decorators, so the same message history can
be sent to OpenAI or Anthropic models.

Message Flow:
    1. Conversation messages are converted to provider message params
       (plain system/user/assistant turns as ``BaseMessageParam``, tool-call
       and tool-result turns as provider-specific dicts)
    2. A Mirascope call is built for the configured model with the bound tools
    3. The response text and any requested tool calls are returned as a
       ``ModelResponse``

Example:
    ```python
    provider = MirascopeProvider(LLMConfig(model="openai/gpt-4o-mini"), settings)
    response = await provider.invoke(state.messages, [WebSearchTool])
    for call in response.tool_calls:
        print(call.name, call.args)
    ```
"""

import json
from typing import Any, Dict, List, Protocol, Sequence, Type, runtime_checkable

import httpx
from anthropic import APIError as AnthropicAPIError
from anthropic import AsyncAnthropic
from anthropic import AuthenticationError as AnthropicAuthenticationError
from mirascope.core import BaseDynamicConfig, BaseMessageParam, BaseTool, anthropic, openai
from openai import APIError as OpenAIAPIError
from openai import AsyncOpenAI
from openai import AuthenticationError as OpenAIAuthenticationError
from pydantic import BaseModel, Field

from chatgraph.core.config import LLMConfig, Settings
from chatgraph.core.errors import AuthenticationError, ProviderError
from chatgraph.core.graph.state import (
    AIMessage,
    HumanMessage,
    Message,
    SystemMessage,
    ToolCall,
    ToolMessage,
)
from chatgraph.core.logging import get_logger, LogComponent, log_verbose

logger = get_logger(LogComponent.AGENT)


class ModelResponse(BaseModel):
    """What the model said, and which tools it asked for."""
    content: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)


@runtime_checkable
class ModelProvider(Protocol):
    """Anything that can send a message history to a model."""

    async def invoke(
        self,
        messages: Sequence[Message],
        tools: Sequence[Type[BaseTool]],
    ) -> ModelResponse:
        ...


def tool_name(tool_type: Type[BaseTool]) -> str:
    """Name a tool is registered and advertised under."""
    return getattr(tool_type, "tool_name", None) or tool_type._name()


class MirascopeProvider:
    """ModelProvider backed by Mirascope's OpenAI and Anthropic calls.

    Attributes:
        llm_config: Model string, temperature and token limits
        settings: Process settings holding provider API keys
    """

    def __init__(self, llm_config: LLMConfig, settings: Settings) -> None:
        self.llm_config = llm_config
        self.settings = settings

    async def invoke(
        self,
        messages: Sequence[Message],
        tools: Sequence[Type[BaseTool]] = (),
    ) -> ModelResponse:
        """Send the history to the model and parse its reply.

        Raises:
            AuthenticationError: If credentials are missing or rejected
            ProviderError: If the provider cannot be reached or errors out
        """
        provider = self.llm_config.provider
        api_key = self.settings.api_key_for(provider)
        call = self._build_call(api_key, list(tools))
        params = self._convert_messages(messages)

        log_verbose(logger, f"Calling {self.llm_config.model} with {len(params)} messages")
        try:
            response = await call(params)
        except (OpenAIAuthenticationError, AnthropicAuthenticationError) as e:
            raise AuthenticationError(
                f"Invalid API key for {provider}: {e}", provider=provider
            ) from e
        except (OpenAIAPIError, AnthropicAPIError, httpx.HTTPError) as e:
            raise ProviderError(f"{provider} request failed: {e}", provider=provider) from e

        return ModelResponse(
            content=response.content or "",
            tool_calls=[
                self._to_tool_call(tool, tools) for tool in (response.tools or [])
            ],
        )

    def _build_call(self, api_key: str, tools: List[Type[BaseTool]]):
        """Create a Mirascope call for the configured model and tools."""
        call_params: Dict[str, Any] = {"temperature": self.llm_config.temperature}
        if self.llm_config.max_tokens:
            call_params["max_tokens"] = self.llm_config.max_tokens

        if self.llm_config.provider == "anthropic":
            decorator = anthropic.call(
                self.llm_config.model_name,
                client=AsyncAnthropic(api_key=api_key),
                call_params=call_params,
            )
        else:
            decorator = openai.call(
                self.llm_config.model_name,
                client=AsyncOpenAI(api_key=api_key),
                call_params=call_params,
            )

        @decorator
        async def _call(messages: list) -> BaseDynamicConfig:
            return {"messages": messages, "tools": tools}

        return _call

    def _convert_messages(self, messages: Sequence[Message]) -> list:
        """Convert message variants to Mirascope / provider message params."""
        anthropic_style = self.llm_config.provider == "anthropic"
        params: list = []
        for message in messages:
            if isinstance(message, SystemMessage):
                params.append(BaseMessageParam(role="system", content=message.content))
            elif isinstance(message, HumanMessage):
                params.append(BaseMessageParam(role="user", content=message.content))
            elif isinstance(message, AIMessage):
                if not message.tool_calls:
                    params.append(BaseMessageParam(role="assistant", content=message.content))
                elif anthropic_style:
                    params.append(_anthropic_tool_use(message))
                else:
                    params.append(_openai_tool_use(message))
            elif isinstance(message, ToolMessage):
                if anthropic_style:
                    block = {
                        "type": "tool_result",
                        "tool_use_id": message.tool_call_id,
                        "content": message.content,
                    }
                    # Consecutive tool results share one user turn
                    previous = params[-1] if params else None
                    if isinstance(previous, dict) and previous.get("_tool_results"):
                        previous["content"].append(block)
                    else:
                        params.append({"role": "user", "content": [block], "_tool_results": True})
                else:
                    params.append({
                        "role": "tool",
                        "tool_call_id": message.tool_call_id,
                        "content": message.content,
                    })
            else:
                raise TypeError(f"Unsupported message type: {type(message).__name__}")

        for param in params:
            if isinstance(param, dict):
                param.pop("_tool_results", None)
        return params

    @staticmethod
    def _to_tool_call(tool: BaseTool, tools: Sequence[Type[BaseTool]]) -> ToolCall:
        """Map a Mirascope tool instance back to a registered tool call."""
        name = _resolve_tool_name(tool, tools)
        return ToolCall(id=tool.tool_call.id, name=name, args=dict(tool.args))


def _resolve_tool_name(tool: BaseTool, tools: Sequence[Type[BaseTool]]) -> str:
    returned = tool._name()
    for tool_type in tools:
        if isinstance(tool, tool_type) or returned in (tool_name(tool_type), tool_type.__name__):
            return tool_name(tool_type)
    return returned


def _openai_tool_use(message: AIMessage) -> Dict[str, Any]:
    return {
        "role": "assistant",
        "content": message.content or None,
        "tool_calls": [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": json.dumps(call.args)},
            }
            for call in message.tool_calls
        ],
    }


def _anthropic_tool_use(message: AIMessage) -> Dict[str, Any]:
    content: List[Dict[str, Any]] = []
    if message.content:
        content.append({"type": "text", "text": message.content})
    content.extend(
        {"type": "tool_use", "id": call.id, "name": call.name, "input": call.args}
        for call in message.tool_calls
    )
    return {"role": "assistant", "content": content}


def create_provider(llm_config: LLMConfig, settings: Settings) -> ModelProvider:
    """Default provider factory used by the API layer and runtime."""
    return MirascopeProvider(llm_config, settings)
