"""
Intent extraction, language detection and translation over a chat-completions API.
"""

import json
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from pydantic import ValidationError

from ...config import ExternalAPIConfig
from ...core.enums import Language
from ...core.exceptions import IntentExtractionError
from ...core.models import ExtractedIntent
from ...utils.logging import get_logger
from .prompts import DETECT_LANGUAGE_PROMPT, INTENT_SYSTEM_PROMPT, TRANSLATE_PROMPT

logger = get_logger("intent")


class IntentExtractor:
    """
    Wraps the language model behind three fail-soft calls.

    Each call makes exactly one request with no retries. Any failure falls back
    to a safe value: an ``unclear`` intent, ``English``, or the original text.
    """

    def __init__(
        self,
        config: ExternalAPIConfig,
        client: Optional[AsyncOpenAI] = None,
        history_turns: int = 4,
    ):
        self.config = config
        self.model = config.llm_model
        self.history_turns = history_turns
        if client is None and config.is_llm_configured():
            client = AsyncOpenAI(
                api_key=config.openai_api_key,
                base_url=config.openai_base_url,
                timeout=config.llm_timeout,
                max_retries=0,
            )
        self.client = client

    async def _complete(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        json_mode: bool = False,
    ) -> str:
        if self.client is None:
            raise IntentExtractionError("Language model is not configured")

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": 0,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(**kwargs)
        content = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not content:
            raise IntentExtractionError("Empty completion")
        return content

    async def extract_intent(
        self,
        text: str,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> ExtractedIntent:
        """
        Classify a message.

        Args:
            text: raw message body
            history: prior turns as ``{"role": ..., "content": ...}``; only the
                last ``history_turns`` are sent

        Returns:
            ExtractedIntent with ``raw_text`` set; ``unclear`` on any failure
        """
        turns = list(history or [])[-self.history_turns:] if self.history_turns else []
        messages = [{"role": "system", "content": INTENT_SYSTEM_PROMPT}]
        messages.extend(turns)
        messages.append({"role": "user", "content": text})

        try:
            content = await self._complete(messages, max_tokens=200, json_mode=True)
            data = json.loads(_strip_code_fence(content))
            if not isinstance(data, dict):
                raise IntentExtractionError(f"Expected a JSON object, got {type(data).__name__}")
            data["raw_text"] = text
            return ExtractedIntent.model_validate(data)
        except (ValueError, ValidationError, IntentExtractionError) as e:
            logger.warning("intent extraction unusable: %s", e)
        except Exception:
            logger.exception("intent extraction call failed")
        return ExtractedIntent.unclear(text)

    async def detect_language(self, text: str) -> str:
        """One-word language name; ``English`` on failure or an unknown answer."""
        try:
            content = await self._complete(
                [{"role": "user", "content": DETECT_LANGUAGE_PROMPT.format(message=text)}],
                max_tokens=20,
            )
        except IntentExtractionError as e:
            logger.warning("language detection unusable: %s", e)
            return Language.ENGLISH.value
        except Exception:
            logger.exception("language detection call failed")
            return Language.ENGLISH.value

        words = content.split()
        language = Language.from_string(words[0]) if words else None
        return (language or Language.ENGLISH).value

    async def translate(self, text: str, target_language: Optional[str]) -> str:
        """Translate ``text``; English targets and failures return it unchanged."""
        if Language.is_english(target_language):
            return text
        try:
            return await self._complete(
                [{
                    "role": "user",
                    "content": TRANSLATE_PROMPT.format(language=target_language, message=text),
                }],
                max_tokens=600,
            )
        except IntentExtractionError as e:
            logger.warning("translation unusable: %s", e)
        except Exception:
            logger.exception("translation to %s failed", target_language)
        return text


def _strip_code_fence(content: str) -> str:
    """Remove a surrounding markdown code fence if the model added one."""
    text = content.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    return text.strip()
