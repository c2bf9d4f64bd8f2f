"""Plan proposers.

A proposer turns a sanitised command into raw text that should contain a
JSON plan. It makes no promise about the shape; workbot.plans.envelope
does all of the checking.
"""

from datetime import date
from typing import Protocol

from loguru import logger
from pydantic_ai import Agent

from workbot.config.settings import settings
from workbot.llm.model import get_model
from workbot.llm.prompt import build_parse_prompt


class PlanProposer(Protocol):
    async def propose(self, command: str, today: date, user_name: str) -> str: ...


class LLMPlanProposer:
    """Proposer backed by a pydantic-ai agent."""

    def __init__(self, provider: str | None = None, model_name: str | None = None) -> None:
        self.provider = provider or settings.llm_provider
        self.model_name = model_name or settings.llm_model

    async def propose(self, command: str, today: date, user_name: str) -> str:
        """Ask the model for a plan.

        Args:
            command: Sanitised user command, sent as the user message
            today: Reference date
            user_name: Caller's display name

        Returns:
            Raw model output
        """
        agent = Agent(
            model=get_model(self.provider, self.model_name),
            system_prompt=build_parse_prompt(today, user_name),
            model_settings={"temperature": 0.1, "max_tokens": 2048},
        )
        logger.info("Requesting plan from LLM", model=self.model_name, command_length=len(command))
        result = await agent.run(command)
        return result.output if isinstance(result.output, str) else str(result.output)
