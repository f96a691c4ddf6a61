"""
Gemini-backed implementations of the Encoder and TopicLabeller interfaces.

This module talks to the Gemini REST API (generativelanguage.googleapis.com):
• embedContent for page vectors
• generateContent for the topic label and the site entity profile
• Each call walks a list of models and uses the first one that answers,
  so a retired or rate-limited model degrades to the next one

Example:
    ```python
    async with aiohttp.ClientSession() as session:
        encoder = GeminiEncoder(session)
        vector = await encoder.encode("Page text ...")

        labeller = GeminiTopicLabeller(session)
        label = await labeller.label("https://example.com", "Page text ...")
        print(label.topic, label.summary)
    ```
"""

from __future__ import annotations
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from sitefocus.config.settings import GEMINI_CONFIG
from sitefocus.core.interfaces.encoder import Encoder, TopicLabeller, TopicLabel

logger = logging.getLogger(__name__)

TOPIC_PROMPT = """Analyse this text extracted from {url}.
1. Identify the main topic in 1 or 2 words (e.g. SEO, Cooking, Finance).
2. Summarise what it is about in one short sentence.
Answer ONLY in JSON like this: {{"topic": "Topic", "summary": "Short summary"}}

Text:
{text}"""

PROFILE_PROMPT = """Act as a semantic SEO expert. I have analysed the website '{domain}'.
These are the titles and H1 headings of its main pages:

{headings}

Write a two-paragraph "Entity Profile".
Paragraph 1: define exactly what this website is about (its main entity).
Paragraph 2: assess the semantic coherence of these URLs. Are they aligned with the main topic or is the content scattered?
Use an analytical, professional tone. Do not use Markdown, only structured plain text."""

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)

class GeminiError(Exception):
    """Raised when no configured Gemini model produced a usable answer."""

def parse_topic_response(text: str) -> TopicLabel:
    """
    Parse the JSON answer of the topic prompt.

    Models like to wrap JSON in markdown fences; those are stripped first.
    Anything unparseable falls back to the "General" label.

    Example:
        >>> parse_topic_response('```json\\n{"topic": "SEO", "summary": "Guides"}\\n```')
        TopicLabel(topic='SEO', summary='Guides')
        >>> parse_topic_response("not json")
        TopicLabel(topic='General', summary='Analysis pending')
    """
    fallback = TopicLabel(topic="General", summary="Analysis pending")
    cleaned = _FENCE.sub("", text or "").strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Could not parse topic JSON from model output: %.80s", cleaned)
        return fallback
    if not isinstance(data, dict):
        return fallback
    topic = str(data.get("topic") or "").strip() or fallback.topic
    summary = str(data.get("summary") or "").strip() or fallback.summary
    return TopicLabel(topic=topic, summary=summary)

def _error_message(body: str, status: int) -> str:
    """Message of an error body; gateways answer with plain text or lists as well as Gemini's objects."""
    try:
        data = json.loads(body)
    except ValueError:
        return body.strip()[:200] or f"HTTP {status}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or f"HTTP {status}")
    if isinstance(error, str) and error:
        return error
    return f"HTTP {status}"

class _GeminiBase:
    def __init__(self, session: aiohttp.ClientSession, api_key: Optional[str] = None,
                 base_url: str = GEMINI_CONFIG["base_url"], timeout: float = GEMINI_CONFIG["timeout"]):
        self._session = session
        self._api_key = GEMINI_CONFIG["api_key"] if api_key is None else api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def _post(self, model: str, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self._base_url}/models/{model}:{method}"
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        async with self._session.post(url, params={"key": self._api_key}, json=body, timeout=timeout) as r:
            if r.status != 200:
                raise GeminiError(f"{model}:{method} failed: {_error_message(await r.text(), r.status)}")
            data = await r.json(content_type=None)
            if not isinstance(data, dict):
                raise GeminiError(f"{model}:{method} returned {type(data).__name__}, expected an object")
            return data

    async def _first_answer(self, models: Sequence[str], method: str, body_for) -> Dict[str, Any]:
        """Try each model in turn and return the first successful response."""
        if not self._api_key:
            raise GeminiError("Missing GEMINI_API_KEY")

        errors = []
        for model in models:
            try:
                return await self._post(model, method, body_for(model))
            except (GeminiError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.warning("Gemini model %s unavailable, trying next: %s", model, e)
                errors.append(str(e))
        raise GeminiError("; ".join(errors) or "No Gemini models configured")

class GeminiEncoder(_GeminiBase, Encoder):
    """
    Embeds page text with Gemini embedding models.

    Attributes:
        models: Embedding models tried in order
    """

    def __init__(self, session: aiohttp.ClientSession, models: Optional[List[str]] = None, **kwargs):
        super().__init__(session, **kwargs)
        self.models = list(models or GEMINI_CONFIG["embed_models"])

    async def encode(self, text: str) -> List[float]:
        data = await self._first_answer(
            self.models,
            "embedContent",
            lambda model: {"model": f"models/{model}", "content": {"parts": [{"text": text}]}},
        )
        embedding = data.get("embedding")
        values = (embedding.get("values") if isinstance(embedding, dict) else None) or []
        if not values:
            raise GeminiError("Empty embedding returned")
        return [float(v) for v in values]

class GeminiTopicLabeller(_GeminiBase, TopicLabeller):
    """
    Labels pages and writes the site entity profile with Gemini text models.
    """

    def __init__(self, session: aiohttp.ClientSession, models: Optional[List[str]] = None, **kwargs):
        super().__init__(session, **kwargs)
        self.models = list(models or GEMINI_CONFIG["generate_models"])

    async def _generate(self, prompt: str) -> str:
        data = await self._first_answer(
            self.models,
            "generateContent",
            lambda model: {"contents": [{"parts": [{"text": prompt}]}]},
        )
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise GeminiError("Gemini answer had no text candidate")

    async def label(self, url: str, text: str) -> TopicLabel:
        try:
            answer = await self._generate(TOPIC_PROMPT.format(url=url, text=text))
        except (GeminiError, aiohttp.ClientError) as e:
            logger.warning("Topic labelling failed for %s: %s", url, e)
            return TopicLabel()
        return parse_topic_response(answer)

    async def entity_profile(self, domain: str, headings: Sequence[str]) -> Optional[str]:
        """
        Write a two-paragraph profile of what the site is about.

        Args:
            domain: The audited domain
            headings: Titles / H1 lines of the analysed pages

        Returns:
            The profile text, or None if no model could write it
        """
        if not headings:
            return None
        try:
            return (await self._generate(PROFILE_PROMPT.format(domain=domain, headings="\n".join(headings)))).strip()
        except (GeminiError, aiohttp.ClientError) as e:
            logger.error("Entity profile failed for %s: %s", domain, e)
            return None
