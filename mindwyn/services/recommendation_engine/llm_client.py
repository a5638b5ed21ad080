"""
Async OpenAI-compatible client for short motivational messages.
Lightweight wrapper around the chat completions API, best effort only.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI
from openai import APIError, RateLimitError, APITimeoutError

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Async wrapper for an OpenAI-compatible chat completion endpoint.

    Failures surface as RuntimeError; callers decide whether to degrade.
    """

    MAX_INPUT_TOKENS = 500
    MAX_OUTPUT_TOKENS = 120   # ~50 words plus emoji
    REQUEST_TIMEOUT = 10.0

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", base_url: Optional[str] = None):
        """
        Args:
            api_key: API key for the completion service
            model: Chat model name
            base_url: Optional OpenAI-compatible endpoint (e.g. a Groq or local gateway)
        """
        if not api_key:
            raise ValueError("API key required for LLMClient")

        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url) if base_url else AsyncOpenAI(api_key=api_key)
        self.model = model

        logger.info(f"LLMClient initialized with model: {model}")

    @classmethod
    def from_settings(cls, settings) -> Optional["LLMClient"]:
        """Build a client from settings, or None when no API key is configured."""
        if not settings.openai_api_key:
            logger.info("No OPENAI_API_KEY configured - generative recommendations disabled")
            return None
        return cls(
            api_key=settings.openai_api_key,
            model=settings.llm_model,
            base_url=settings.openai_base_url,
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
        max_retries: int = 1,
    ) -> str:
        """
        Generate a completion with retry on transient failures.

        Returns:
            Generated response text (stripped)

        Raises:
            RuntimeError: If the request fails or returns no content
        """
        estimated_input_tokens = (len(system_prompt) + len(user_prompt)) // 4
        if estimated_input_tokens > self.MAX_INPUT_TOKENS:
            logger.warning(
                f"Input may exceed token budget: ~{estimated_input_tokens} tokens "
                f"(limit: {self.MAX_INPUT_TOKENS})"
            )

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        for attempt in range(max_retries + 1):
            try:
                logger.debug(f"Requesting completion (attempt {attempt + 1}/{max_retries + 1})")

                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=self.MAX_OUTPUT_TOKENS,
                    timeout=self.REQUEST_TIMEOUT,
                )

                content = response.choices[0].message.content
                if not content or not content.strip():
                    raise RuntimeError("Completion returned no content")

                usage = response.usage
                if usage is not None:
                    logger.info(
                        f"Completion successful - Tokens: {usage.prompt_tokens} in, "
                        f"{usage.completion_tokens} out"
                    )

                return content.strip()

            except RateLimitError as e:
                logger.warning(f"Rate limit hit (attempt {attempt + 1}): {e}")
                if attempt == max_retries:
                    raise RuntimeError("Completion rate limit exceeded") from e

            except APITimeoutError as e:
                logger.warning(f"Timeout (attempt {attempt + 1}): {e}")
                if attempt == max_retries:
                    raise RuntimeError("Completion request timed out") from e

            except APIError as e:
                logger.error(f"Completion API error: {e}")
                raise RuntimeError(f"AI service error: {str(e)}") from e

            except RuntimeError:
                raise

            except Exception as e:
                logger.error(f"Unexpected error in LLM completion: {e}")
                raise RuntimeError(f"Failed to generate response: {str(e)}") from e

        raise RuntimeError("Failed to get completion after all retries")
