import logging

from langchain_openai import ChatOpenAI

from invisible_hr.config import Settings

logger = logging.getLogger(__name__)

# Ollama exposes an OpenAI-compatible API under /v1 and ignores the key
OLLAMA_API_KEY = "ollama"


def create_chat_model(settings: Settings, temperature: float = None, max_tokens: int = 1024) -> ChatOpenAI:
    """Build the chat model selected by CHAT_PROVIDER."""
    temperature = settings.chat_temperature if temperature is None else temperature

    if settings.chat_provider == "ollama":
        base_url = f"{settings.ollama_base_url.rstrip('/')}/v1"
        logger.info(f"Using Ollama chat model {settings.chat_model} at {base_url}")
        return ChatOpenAI(
            model=settings.chat_model,
            base_url=base_url,
            api_key=OLLAMA_API_KEY,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=settings.request_timeout,
            max_retries=2,
        )

    logger.info(f"Using OpenAI chat model {settings.chat_model}")
    return ChatOpenAI(
        model=settings.chat_model,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=settings.request_timeout,
        max_retries=2,
    )
