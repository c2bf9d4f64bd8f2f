"""Model lookup for the plan proposer."""

from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from workbot.config.settings import settings

SUPPORTED_PROVIDERS = ("openai",)


def get_model(provider: str, model_name: str) -> OpenAIChatModel:
    """Build the chat model for a configured provider.

    An empty OPENAI_API_KEY setting leaves the key to the provider's own
    environment lookup.
    """
    if provider == "openai":
        return OpenAIChatModel(model_name, provider=OpenAIProvider(api_key=settings.openai_api_key or None))

    raise ValueError(f"Unsupported LLM provider: {provider}. Expected one of {', '.join(SUPPORTED_PROVIDERS)}.")
