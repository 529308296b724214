"""Cooking assistant backed by the Google Generative Language API.

The client turns a room's recipe, the asker's current step and their question
into a single prompt and sends it to the ``generateContent`` endpoint. Every
outcome is returned as a value rather than raised:

- ``Answer(text)`` when the service replied with a usable candidate
- ``Fallback(reason)`` for any network error, non-2xx status or malformed body

Callers render both variants into the same chat message, so room members
cannot tell a failure apart from an answer except by its text.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-pro"

FALLBACK_TEXT = (
    "Sorry, I'm having trouble right now. "
    "Try asking other participants or check back in a moment!"
)


@dataclass(frozen=True)
class Answer:
    text: str


@dataclass(frozen=True)
class Fallback:
    reason: str
    text: str = FALLBACK_TEXT


AdviceResult = Union[Answer, Fallback]


class AIResponseError(Exception):
    """The service replied, but not with a usable candidate."""


def _recipe_field(recipe: Any, key: str) -> Any:
    if isinstance(recipe, Mapping):
        return recipe.get(key)
    return None


def build_prompt(recipe: Any, current_step: Any, question: Any) -> str:
    """Assemble the context prompt sent to the model."""
    name = _recipe_field(recipe, "name")
    if recipe:
        ingredients = _recipe_field(recipe, "ingredients") or []
        if isinstance(ingredients, (list, tuple)):
            ingredients = ", ".join(str(item) for item in ingredients)
        recipe_context = (
            f"Recipe: {name}\n"
            f"Ingredients: {ingredients}\n"
            f"Cooking time: {_recipe_field(recipe, 'cookingTime')} minutes"
        )
    else:
        recipe_context = "No specific recipe selected"

    return (
        f"You are an expert cooking assistant helping users cook {name or 'a recipe'} in real-time.\n"
        "\n"
        "Current recipe context:\n"
        f"{recipe_context}\n"
        "\n"
        f"User is currently on step: {current_step}.\n"
        "\n"
        f"User question: {question}\n"
        "\n"
        "Please provide helpful, concise cooking advice. Focus on:\n"
        "- Cooking techniques and tips\n"
        "- Ingredient substitutions if needed\n"
        "- Timing and temperature guidance\n"
        "- Troubleshooting cooking issues\n"
        "\n"
        "Keep responses friendly and practical, as if you're cooking alongside them."
    )


def extract_answer_text(body: Any) -> str:
    """Pull the first candidate's text out of a generateContent response."""
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise AIResponseError(f"Malformed response: missing {e}") from e
    if not isinstance(text, str):
        raise AIResponseError("Malformed response: candidate text is not a string")
    return text


class AIAdvisoryClient:
    """Stateless client for the cooking assistant.

    The HTTP session is created on first use and reused afterwards. No explicit
    timeout or retry is configured; aiohttp's defaults apply.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        if not api_key:
            raise ValueError("An API key is required for the AI advisory client")
        self._api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _generate(self, prompt: str) -> str:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self._api_key,
        }
        session = self._get_session()
        async with session.post(self.endpoint, json=payload, headers=headers) as response:
            if response.status >= 300:
                detail = await response.text()
                raise AIResponseError(f"HTTP {response.status}: {detail[:200]}")
            body = await response.json(content_type=None)
        return extract_answer_text(body)

    async def ask(self, recipe: Any, current_step: Any, question: Any) -> AdviceResult:
        """Ask the assistant a question in the context of a recipe.

        Never raises for service failures; those come back as a Fallback.
        """
        prompt = build_prompt(recipe, current_step, question)
        try:
            text = await self._generate(prompt)
        except (aiohttp.ClientError, asyncio.TimeoutError, AIResponseError, ValueError) as e:
            logger.error(f"AI API Error: {e}")
            return Fallback(reason=str(e))
        return Answer(text=text)

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
