"""Base utilities for AI agents.

This module provides common utilities for creating and running AI agents
using the OpenAI Agents SDK.
"""

import logging
import os
from typing import Any, Optional

# Disable tracing to avoid noisy 503 errors from telemetry
os.environ.setdefault("OPENAI_AGENTS_DISABLE_TRACING", "1")

from agents import Agent, Runner, set_default_openai_client
from openai import AsyncOpenAI


logger = logging.getLogger(__name__)

# Default model to use for agents
DEFAULT_MODEL = "gpt-4o"


def get_model() -> str:
    """Get the model to use for agents.

    Checks OPENAI_MODEL environment variable, falls back to default.
    """
    return os.environ.get("OPENAI_MODEL", DEFAULT_MODEL)


def configure_client(api_key: str, timeout: float) -> AsyncOpenAI:
    """Install an OpenAI client with a request timeout for all agents.

    Args:
        api_key: OpenAI API key.
        timeout: Request timeout in seconds.

    Returns:
        The configured client.
    """
    client = AsyncOpenAI(api_key=api_key, timeout=timeout)
    set_default_openai_client(client)
    return client


def create_agent(
    name: str,
    instructions: str,
    model: Optional[str] = None,
) -> Agent:
    """Create an AI agent with the specified configuration.

    Args:
        name: Name of the agent.
        instructions: System instructions for the agent.
        model: Optional model override. Uses default if not specified.

    Returns:
        Configured Agent instance.
    """
    return Agent(
        name=name,
        instructions=instructions,
        tools=[],
        model=model or get_model(),
    )


def run_agent_sync(
    agent: Agent,
    message: str,
    context: Optional[dict[str, Any]] = None,
) -> str:
    """Run an agent synchronously and return the response.

    Args:
        agent: The agent to run.
        message: User message to send to the agent.
        context: Optional context dictionary to pass to the agent.

    Returns:
        Agent's response as a string.
    """
    logger.debug("Running agent %s with model %s", agent.name, agent.model)
    result = Runner.run_sync(agent, message, context=context)
    return str(result.final_output)
