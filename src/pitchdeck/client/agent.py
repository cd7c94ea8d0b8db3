"""
Chat client that lets a Databricks-hosted LLM drive the tool server(s).

The client connects to one or more tool servers, turns each declared tool into
a LangChain ``StructuredTool`` bound to the chat model, and keeps an ordered
transcript of human, AI and tool messages. Every tool call the model makes is
executed and its text result appended to the transcript before the model is
asked again.
"""

import asyncio
import logging
import os
from contextlib import AsyncExitStack, nullcontext
from typing import Any, Optional

import mlflow
from databricks_langchain import ChatDatabricks
from fastmcp import Client
from fastmcp.client.transports import NodeStdioTransport, PythonStdioTransport
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_core.tools import StructuredTool

from pitchdeck.config.settings import AppSettings

logger = logging.getLogger(__name__)


class ToolClientError(Exception):
    """Base exception for chat client errors."""

    pass


def build_transport(server_script_path: str):
    """
    Create a stdio transport that launches the given server script.

    The child inherits the full environment so API keys reach the server.

    Raises:
        ValueError: If the script is neither a .py nor a .js file
    """
    env = dict(os.environ)
    if server_script_path.endswith(".py"):
        return PythonStdioTransport(script_path=server_script_path, env=env)
    if server_script_path.endswith(".js"):
        return NodeStdioTransport(script_path=server_script_path, env=env)
    raise ValueError("Server script must be a .js or .py file")


def content_to_text(content: Any) -> str:
    """Flatten message or tool-result content blocks into plain text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict):
            if block.get("type") == "text":
                parts.append(block.get("text", ""))
        elif getattr(block, "text", None) is not None:
            parts.append(block.text)
        else:
            parts.append(f"[{getattr(block, 'type', 'unknown')} content]")
    return "\n".join(parts)


def mcp_tool_to_langchain(client: Client, tool) -> StructuredTool:
    """Wrap a declared server tool as a model-callable LangChain tool."""

    async def call_tool(**arguments: Any) -> str:
        result = await client.call_tool_mcp(name=tool.name, arguments=arguments)
        text = content_to_text(result.content)
        if result.isError:
            logger.warning(
                "Tool reported an error",
                extra={"tool": tool.name, "error": text},
            )
        return text

    return StructuredTool(
        name=tool.name,
        description=tool.description or "",
        args_schema=tool.inputSchema,
        coroutine=call_tool,
    )


class ToolClient:
    """
    Conversational relay between a person, an LLM and the tool servers.

    The transcript grows for the lifetime of the client; the configured system
    prompt is prepended on every model call rather than stored in it.
    """

    def __init__(self, settings: AppSettings, model: Optional[BaseChatModel] = None):
        self.settings = settings
        self.model = model or self._create_model()
        self.system_prompt: str = settings.prompts.get("system_prompt", "")
        self.messages: list[BaseMessage] = []
        self.tools: dict[str, StructuredTool] = {}
        self._exit_stack = AsyncExitStack()
        self._tracing = settings.tracing.enabled and self._setup_mlflow()

    def _create_model(self) -> ChatDatabricks:
        """Create LangChain Databricks model."""
        llm = self.settings.llm
        try:
            model = ChatDatabricks(
                endpoint=llm.endpoint,
                temperature=llm.temperature,
                max_tokens=llm.max_tokens,
                top_p=llm.top_p,
            )
        except Exception as e:
            raise ToolClientError(f"Failed to create ChatDatabricks model: {e}") from e

        logger.info(
            "ChatDatabricks model created",
            extra={"endpoint": llm.endpoint, "temperature": llm.temperature},
        )
        return model

    def _setup_mlflow(self) -> bool:
        """Configure MLflow tracing. Returns False if it could not be set up."""
        tracing = self.settings.tracing
        try:
            mlflow.set_tracking_uri(tracing.tracking_uri)
            mlflow.set_experiment(tracing.experiment_name)
            mlflow.langchain.autolog()
        except Exception as e:
            logger.warning(f"Failed to configure MLflow, continuing without tracing: {e}")
            return False

        logger.info(
            "MLflow tracing configured",
            extra={
                "tracking_uri": tracing.tracking_uri,
                "experiment_name": tracing.experiment_name,
            },
        )
        return True

    # -- Server connections ------------------------------------------------

    async def connect_to_server(self, server_script_path: str) -> list[str]:
        """
        Launch a server script over stdio and register its tools.

        Returns:
            Names of the tools the server declared

        Raises:
            ToolClientError: If the script type is unsupported or the connection fails
        """
        try:
            transport = build_transport(server_script_path)
        except ValueError as e:
            raise ToolClientError(str(e)) from e
        return await self.connect(transport, label=server_script_path)

    async def connect(self, target: Any, label: Optional[str] = None) -> list[str]:
        """Connect to anything ``fastmcp.Client`` accepts and register its tools."""
        label = label or str(target)
        client = Client(target)
        try:
            await self._exit_stack.enter_async_context(client)
            declared = await client.list_tools()
        except Exception as e:
            raise ToolClientError(f"Failed to connect to tool server {label}: {e}") from e

        names = []
        for tool in declared:
            if tool.name in self.tools:
                logger.warning(
                    "Tool name declared by more than one server; using the latest",
                    extra={"tool": tool.name, "server": label},
                )
            self.tools[tool.name] = mcp_tool_to_langchain(client, tool)
            names.append(tool.name)

        logger.info("Connected to tool server", extra={"server": label, "tools": names})
        return names

    async def cleanup(self) -> None:
        """Close all server sessions."""
        await self._exit_stack.aclose()

    # -- Conversation ------------------------------------------------------

    def _conversation(self) -> list[BaseMessage]:
        if self.system_prompt:
            return [SystemMessage(content=self.system_prompt), *self.messages]
        return list(self.messages)

    async def _run_tool_call(self, tool_call: dict[str, Any]) -> ToolMessage:
        """Execute one model-requested tool call; the result is always text."""
        name = tool_call["name"]
        tool = self.tools.get(name)

        if tool is None:
            content = f"Unknown tool: {name}"
        else:
            logger.info("Calling tool", extra={"tool": name})
            try:
                content = content_to_text(await tool.ainvoke(tool_call.get("args") or {}))
            except Exception as e:
                logger.error(f"Tool {name} failed: {e}", exc_info=True)
                content = f"Error executing {name}: {e}"

        return ToolMessage(content=content, tool_call_id=tool_call["id"], name=name)

    async def process_query(self, query: str) -> str:
        """
        Send a user query to the model and resolve its tool calls.

        Returns:
            The model's final text reply

        Raises:
            ToolClientError: If the model cannot be invoked. The transcript is
                restored to its state before the query.
        """
        checkpoint = len(self.messages)
        self.messages.append(HumanMessage(content=query))

        tools = list(self.tools.values())
        model = self.model.bind_tools(tools) if tools else self.model
        max_rounds = self.settings.llm.max_tool_rounds
        tool_calls = 0

        span_cm = mlflow.start_span(name="process_query") if self._tracing else nullcontext()
        with span_cm as span:
            for _ in range(max_rounds):
                try:
                    response = await model.ainvoke(self._conversation())
                except Exception as e:
                    del self.messages[checkpoint:]
                    logger.error(f"LLM invocation failed: {e}", exc_info=True)
                    raise ToolClientError(f"LLM invocation failed: {e}") from e

                self.messages.append(response)
                if not response.tool_calls:
                    reply = content_to_text(response.content)
                    break

                for tool_call in response.tool_calls:
                    self.messages.append(await self._run_tool_call(tool_call))
                    tool_calls += 1
            else:
                reply = (
                    f"Stopped after {max_rounds} rounds of tool calls without a final answer."
                )
                self.messages.append(AIMessage(content=reply))

            if span is not None:
                span.set_attribute("query", query)
                span.set_attribute("tool_calls", tool_calls)
                span.set_attribute("transcript_length", len(self.messages))

        logger.info(
            "Query completed",
            extra={"tool_calls": tool_calls, "transcript_length": len(self.messages)},
        )
        return reply

    async def chat_loop(self) -> None:
        """Read queries from the terminal until the user types 'quit'."""
        print("Pitch deck client started!")
        print("\nType your queries or 'quit' to exit.")

        while True:
            try:
                query = (await asyncio.to_thread(input, "\nQuery: ")).strip()
            except EOFError:
                break

            if query.lower() == "quit":
                break
            if not query:
                continue

            try:
                reply = await self.process_query(query)
            except ToolClientError as e:
                print(f"\nError: {e}")
                continue

            print("\n" + reply)
