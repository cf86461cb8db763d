import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from .errors import RewriteBackendError

logger = logging.getLogger(__name__)


CHARACTER_LIMITS = {
    "twitter": 280,
    "instagram": 2200,
    "facebook": 63206,
    "linkedin": 3000,
}
DEFAULT_CHARACTER_LIMIT = 2200

SYSTEM_INSTRUCTION = (
    "You are a social media content writer for real estate agents. Rewrite the "
    "given caption to sound like it was written by the agent personally, "
    "incorporating their name and brand voice. Keep the same message and "
    "call-to-action but make it feel authentic and personal. Stay within the "
    "platform's character limit. Return ONLY the rewritten caption text, no "
    "explanation."
)


@dataclass(frozen=True)
class VoiceProfile:
    name: str
    company: Optional[str] = None
    tagline: Optional[str] = None


class TextGenerator(Protocol):
    def generate(self, prompt: str, system_instruction: str) -> str:
        ...


class ChatModelTextGenerator:
    """
    Adapter for a LangChain chat model (e.g. `ChatOpenAI`).
    """

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    def generate(self, prompt: str, system_instruction: str) -> str:
        raw = self.llm.invoke([("system", system_instruction), ("human", prompt)])
        # Empty content must stay empty so the rewriter falls back.
        if hasattr(raw, "content"):
            return raw.content
        return str(raw)


class OpenAITextGenerator:
    """
    Calls the OpenAI chat-completions API directly.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 1024,
        client: Any = None,
    ) -> None:
        if client is None:
            from openai import OpenAI

            client = OpenAI(api_key=api_key)
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def generate(self, prompt: str, system_instruction: str) -> str:
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        return response.choices[0].message.content


def character_limit(platform: str) -> int:
    return CHARACTER_LIMITS.get((platform or "").strip().lower(), DEFAULT_CHARACTER_LIMIT)


class CaptionRewriter:
    """
    Rewrites a caption in a subscriber's voice and enforces the platform's
    character limit.

    Rewriting is an enhancement, never a hard dependency: on any backend
    failure the original caption is returned unchanged.
    """

    def __init__(self, generator: Optional[TextGenerator] = None) -> None:
        self.generator = generator

    def rewrite(self, caption: str, voice_profile: VoiceProfile, platform: str) -> str:
        limit = character_limit(platform)
        try:
            rewritten = self._generate(caption, voice_profile, platform, limit)
        except Exception as e:
            logger.warning("Caption rewrite failed, keeping original caption: %s", e)
            return caption

        # Hard cap regardless of what the backend returned; may cut mid-word.
        return rewritten[:limit]

    def _generate(self, caption: str, voice_profile: VoiceProfile, platform: str, limit: int) -> str:
        if self.generator is None:
            raise RewriteBackendError("no text generation backend configured")

        prompt = self._build_prompt(caption, voice_profile, platform, limit)
        text = self.generator.generate(prompt, SYSTEM_INSTRUCTION)
        if not isinstance(text, str):
            raise RewriteBackendError(f"backend returned {type(text).__name__}, expected text")

        text = text.strip()
        if not text:
            raise RewriteBackendError("backend returned an empty caption")
        return text

    @staticmethod
    def _build_prompt(caption: str, voice_profile: VoiceProfile, platform: str, limit: int) -> str:
        return (
            f"Rewrite this caption for {platform} (max {limit} characters):\n\n"
            f"Original caption: {caption}\n\n"
            f"Agent name: {voice_profile.name}\n"
            f"Company: {voice_profile.company or ''}\n"
            f"Tagline: {voice_profile.tagline or ''}\n"
            f"Platform: {platform}"
        )
