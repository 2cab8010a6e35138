"""Runtime Module for Chat Agent Execution Environments"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from chatgraph.core.agent.chat import ChatAgent, ChatResult, InterruptedChatOutput
from chatgraph.core.config import LLMConfig
from chatgraph.core.errors import ChatGraphError
from chatgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.RUNTIME)

EXIT_COMMANDS = ("exit", "quit")


class Session(BaseModel):
    """Tracks runtime session data. The session id doubles as the thread id."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    platform: str
    start_time: datetime = Field(default_factory=datetime.now)


class RuntimeConfig(BaseModel):
    """Configuration for runtime environments.

    Attributes:
        llm: Model settings for every turn of the session
        extra_context: Optional context added to the system message of a new thread
    """
    llm: LLMConfig = Field(default_factory=LLMConfig)
    extra_context: Optional[str] = None


class BaseRuntime(ABC):
    """Abstract base for all runtime environments."""

    def __init__(self, agent: ChatAgent, config: Optional[RuntimeConfig] = None) -> None:
        self.agent = agent
        self.config = config or RuntimeConfig()
        self.current_session: Optional[Session] = None

    def _start_session(self, platform: str) -> None:
        self.current_session = Session(platform=platform)

    async def process_message(self, message: str) -> ChatResult:
        """Run one turn on the session's thread."""
        if not self.current_session:
            self._start_session(platform="chat")

        result = await self.agent.execute(
            {"input_text": message, "extra_context": self.config.extra_context},
            self.config.llm,
            thread_id=self.current_session.id,
        )
        logger.debug(f"Agent response: {result.output_text}")
        return result

    async def answer_interrupt(self, human_response: str) -> ChatResult:
        """Resume the session's suspended thread with a human answer."""
        return await self.agent.resume_execution(self.current_session.id, human_response)

    @abstractmethod
    async def start(self) -> None:
        """Start the runtime."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop the runtime."""


class LocalRuntime(BaseRuntime):
    """Runtime for local console chat interactions.

    When the model asks for human assistance the operator is prompted inline
    and the turn resumes with their answer.
    """

    def __init__(
        self,
        agent: ChatAgent,
        config: Optional[RuntimeConfig] = None,
        input_func: Callable[[str], str] = input,
        output_func: Callable[..., None] = print,
    ) -> None:
        super().__init__(agent, config)
        self._input = input_func
        self._output = output_func

    async def start(self) -> None:
        """Start a local chat session."""
        self._start_session("local")
        logger.info("Starting chat session. Type 'exit' or 'quit' to stop.")

        while True:
            try:
                user_input = self._input("\nYou: ")
                if user_input.strip().lower() in EXIT_COMMANDS:
                    break
                if not user_input.strip():
                    continue

                result = await self.process_message(user_input)
                while isinstance(result, InterruptedChatOutput):
                    result = await self.answer_interrupt(self._ask_human(result))
                self._output(f"\nAssistant: {result.output_text}")

            except (KeyboardInterrupt, EOFError):
                logger.info("Chat session interrupted by user.")
                break
            except ChatGraphError as e:
                logger.error(f"Error in chat loop: {e}")
                self._output(f"\n[Error] {e}")

        await self.stop()
        logger.info("Chat session ended. Goodbye!")

    async def stop(self) -> None:
        """Stop the local runtime."""
        self.current_session = None

    def _ask_human(self, result: InterruptedChatOutput) -> str:
        request = result.interrupt_request
        self._output(f"\n[Human assistance requested: {request.request_type}, urgency {request.urgency}]")
        self._output(request.message)
        if request.context:
            self._output(f"Context: {request.context}")
        if request.options:
            self._output("Options: " + ", ".join(request.options))

        answer = ""
        while not answer.strip():
            answer = self._input("Human: ")
        return answer


__all__ = ["Session", "RuntimeConfig", "BaseRuntime", "LocalRuntime"]
