"""
Generative-text lyrics source

Asks a large language model for the lyrics of a song. The response is
unverified model output, so the orchestrator treats it as a best-effort
source: short answers are rejected and failures fall through to web search.

Providers:
- openai: OpenAI chat completions
- grok: xAI, through its OpenAI-compatible endpoint
- anthropic: Anthropic messages API
"""

from typing import Optional

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from ..config.settings import GenerativeConfig, VALID_PROVIDERS
from ..core.exceptions import ConfigurationError, UpstreamError
from ..utils.helpers import is_blank
from ..utils.logger import get_logger


XAI_BASE_URL = "https://api.x.ai/v1"

DEFAULT_MODELS = {
    'openai': 'gpt-4o',
    'grok': 'grok-3-beta',
    'anthropic': 'claude-3-7-sonnet-20250219',
}

MAX_TOKENS = 2048


def build_lyrics_prompt(title: str, artist: Optional[str] = None) -> str:
    """
    Build the instruction prompt for a lyrics request

    Args:
        title: Song title
        artist: Artist name (optional)

    Returns:
        Prompt text asking for the lyrics only
    """
    song = f"「{title.strip()}」"
    if not is_blank(artist):
        song += f" by {artist.strip()}"

    return (
        f"Please provide the complete lyrics of the song {song}.\n"
        "Reply with the lyrics only: no title, no explanation, no notes.\n"
        "Keep the original language of the song.\n"
        "Separate paragraphs with one blank line and do not label sections."
    )


class TextGenerator:
    """
    Interface of a generative text source

    Implementations set provider and implement generate_text(); any
    object with the same shape can be passed to the orchestrator.
    """

    provider = "none"

    async def generate_text(self, prompt: str) -> str:
        raise NotImplementedError


class OpenAITextGenerator(TextGenerator):
    """OpenAI chat completions, also used for xAI's compatible API"""

    def __init__(self, config: GenerativeConfig, client=None, provider: str = "openai"):
        self.provider = provider
        self.model = config.model or DEFAULT_MODELS[provider]
        self.temperature = config.temperature
        self.logger = get_logger(__name__)

        if client is None:
            base_url = XAI_BASE_URL if provider == "grok" else None
            client = AsyncOpenAI(api_key=config.api_key, base_url=base_url, timeout=config.timeout)
        self.client = client

    async def generate_text(self, prompt: str) -> str:
        self.logger.debug(f"Requesting text from {self.provider} ({self.model}), prompt length {len(prompt)}")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{'role': 'user', 'content': prompt}],
                temperature=self.temperature,
            )
        except Exception as e:
            raise UpstreamError(
                f"{self.provider} request failed: {e}",
                details={'provider': self.provider, 'model': self.model, 'original_error': str(e)}
            ) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class AnthropicTextGenerator(TextGenerator):
    """Anthropic messages API"""

    provider = "anthropic"

    def __init__(self, config: GenerativeConfig, client=None):
        self.model = config.model or DEFAULT_MODELS[self.provider]
        self.temperature = config.temperature
        self.logger = get_logger(__name__)
        self.client = client or AsyncAnthropic(api_key=config.api_key, timeout=config.timeout)

    async def generate_text(self, prompt: str) -> str:
        self.logger.debug(f"Requesting text from anthropic ({self.model}), prompt length {len(prompt)}")
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                temperature=self.temperature,
                messages=[{'role': 'user', 'content': prompt}],
            )
        except Exception as e:
            raise UpstreamError(
                f"anthropic request failed: {e}",
                details={'provider': self.provider, 'model': self.model, 'original_error': str(e)}
            ) from e

        return "".join(
            getattr(block, 'text', '') for block in response.content
            if getattr(block, 'type', None) == 'text'
        )


def create_text_generator(config: GenerativeConfig) -> Optional[TextGenerator]:
    """
    Create the configured text generator

    Args:
        config: Generative settings

    Returns:
        TextGenerator, or None when the provider is "none" or has no API key

    Raises:
        ConfigurationError: If the provider name is unknown
    """
    provider = (config.provider or "none").lower()
    if provider not in VALID_PROVIDERS:
        raise ConfigurationError(
            f"Unknown generative provider: {config.provider}",
            details={'valid_providers': VALID_PROVIDERS}
        )

    if provider == "none":
        return None

    if is_blank(config.api_key):
        get_logger(__name__).warning(f"No API key configured for {provider}, generative source disabled")
        return None

    if provider == "anthropic":
        return AnthropicTextGenerator(config)
    return OpenAITextGenerator(config, provider=provider)
