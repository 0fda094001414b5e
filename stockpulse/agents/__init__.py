"""AI agents for StockPulse."""

from stockpulse.agents.base import (
    configure_client,
    create_agent,
    get_model,
    run_agent_sync,
)
from stockpulse.agents.commentary import (
    CommentaryAgent,
    CommentarySink,
    build_prompt,
)

__all__ = [
    "configure_client",
    "create_agent",
    "get_model",
    "run_agent_sync",
    "CommentaryAgent",
    "CommentarySink",
    "build_prompt",
]
