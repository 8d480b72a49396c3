"""
Remote dream analysis through an LLM.

The gateway builds the prompt, makes exactly one call through a
``CompletionClient``, races it against a timeout and turns the reply into a
``DreamAnalysis``. Every failure is raised as a ``GenerationError`` subclass
so the orchestrator can decide what to do; nothing is retried here.
"""

import asyncio
import json
import logging
import re
from typing import Awaitable, Optional, Protocol, Set, TypeVar

import openai
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import ValidationError

from .exceptions import (
    GenerationError,
    GenerationTimeout,
    NonsensicalContentError,
    QuotaExceeded,
    ShapeFailure,
    TransportFailure,
    Unauthorized,
)
from .schemas import DreamAnalysis, DreamRequest, emotion_value

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 60.0
MIN_NARRATIVE_LENGTH = 100
NONSENSICAL = "nonsensical"

SYSTEM_PROMPT = """You are an expert in dream interpretation and psychology.

Analyze the user's dream fragments and emotional context to generate:
1. A complete, vivid dream narrative (350-500 words) that incorporates all the dream cues provided
2. A psychological interpretation including key symbols, analysis summary, and reflection questions

Format your response as JSON with the following structure:
{
  "title": "Creative title for the dream",
  "dreamNarrative": "Full dream narrative...",
  "psychologicalReport": {
    "keySymbols": [
      {
        "symbol": "Name of dream element",
        "icon": "A relevant Remix icon name (e.g., 'plant-line', 'home-4-line')",
        "meaning": "Psychological interpretation of this symbol"
      }
    ],
    "analysisSummary": "Psychological analysis of the dream...",
    "reflectionQuestions": [
      "Question 1 for the dreamer to reflect on",
      "Question 2 for the dreamer to reflect on",
      "Question 3 for the dreamer to reflect on",
      "Question 4 for the dreamer to reflect on"
    ]
  }
}

Include between 3 and 5 key symbols and exactly 4 reflection questions.
If the dream fragments are random characters or otherwise nonsensical, respond only with:
{"error": "nonsensical", "message": "A short explanation for the dreamer"}

Return only the JSON object, no other text."""

_FENCED_JSON = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

# Calls abandoned after a timeout; held so they are not garbage collected
# before they finish.
_abandoned: Set[asyncio.Future] = set()


class CompletionClient(Protocol):
    async def complete(self, system_prompt: str, user_prompt: str, expect_json: bool = False) -> str:
        ...


class ChatCompletionClient:
    """langchain-openai chat model exposed as a plain ``complete`` call."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gpt-4o",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        base_url: Optional[str] = None,
    ):
        self.model_name = model_name
        self.llm = ChatOpenAI(
            api_key=api_key,
            model=model_name,
            temperature=temperature,
            max_tokens=max_tokens,
            base_url=base_url,
            max_retries=0,
        )

    async def complete(self, system_prompt: str, user_prompt: str, expect_json: bool = False) -> str:
        model = self.llm.bind(response_format={"type": "json_object"}) if expect_json else self.llm
        result = await model.ainvoke(
            [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        )
        return result.content


def build_user_prompt(request: DreamRequest) -> str:
    return (
        f"Dream Fragments: {request.dream_cues}\n"
        f"Recurring Dream: {'Yes' if request.is_recurring else 'No'}\n"
        f"Primary Emotion: {emotion_value(request.primary_emotion)}\n"
        f"Waking Feeling: {request.wake_feeling}/5 (1=Unsettled, 5=Refreshed)\n"
        f"Additional Emotional Context: {request.additional_emotions or 'None provided'}"
    )


async def race_with_timeout(awaitable: Awaitable[T], timeout: float) -> T:
    """
    Settle with whichever finishes first: the call or the timeout.

    The result lives in a single future that is only ever set once. When the
    timeout wins the call is left running; its eventual result or error is
    dropped instead of overwriting the outcome.
    """
    loop = asyncio.get_running_loop()
    outcome = loop.create_future()
    call = asyncio.ensure_future(awaitable)

    def settle_from_call(task: asyncio.Future) -> None:
        if outcome.done():
            if not task.cancelled() and task.exception() is None:
                logger.info("Discarding generation response that arrived after the timeout")
            return
        if task.cancelled():
            outcome.set_exception(TransportFailure("Generation call was cancelled"))
        elif task.exception() is not None:
            outcome.set_exception(task.exception())
        else:
            outcome.set_result(task.result())

    def settle_from_timer() -> None:
        if not outcome.done():
            outcome.set_exception(
                GenerationTimeout(f"Analysis timed out after {timeout:g} seconds")
            )

    call.add_done_callback(settle_from_call)
    timer = loop.call_later(timeout, settle_from_timer)
    try:
        return await outcome
    finally:
        timer.cancel()
        if not call.done():
            _abandoned.add(call)
            call.add_done_callback(_abandoned.discard)


def classify_upstream_error(error: Exception) -> Exception:
    """Best-effort mapping of a provider error onto our error kinds."""
    message = str(error)

    if NONSENSICAL in message.lower():
        return NonsensicalContentError(
            "Your dream description appears to be nonsensical. "
            "Please describe your dream using real words."
        )
    if isinstance(error, GenerationError):
        return error

    if isinstance(error, openai.APITimeoutError):
        return GenerationTimeout(f"Generation request timed out: {message}")
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return Unauthorized(f"Generation API rejected the credentials: {message}", error.status_code)
    if isinstance(error, openai.RateLimitError):
        return QuotaExceeded(f"Generation API quota exceeded: {message}", error.status_code)
    if isinstance(error, openai.APIStatusError):
        if error.status_code in (401, 403):
            return Unauthorized(f"Generation API access denied: {message}", error.status_code)
        if error.status_code == 429:
            return QuotaExceeded(f"Generation API quota exceeded: {message}", error.status_code)
        return TransportFailure(f"Generation API error: {message}", error.status_code)

    if "API_KEY_INVALID" in message or "401" in message:
        return Unauthorized("Generation API key is invalid. Please check your API key.")
    if "QUOTA_EXCEEDED" in message or "RATE_LIMIT_EXCEEDED" in message or "429" in message:
        return QuotaExceeded("Generation API quota exceeded. Please try again later.")
    if "403" in message or "PERMISSION_DENIED" in message:
        return Unauthorized("Generation API access forbidden. Your API key may not have the required permissions.")
    return TransportFailure(f"Generation API error: {message}")


def parse_analysis(content: str) -> DreamAnalysis:
    text = content.strip()
    fenced = _FENCED_JSON.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ShapeFailure(f"Generator reply is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ShapeFailure("Generator reply is not a JSON object")

    error = data.get("error")
    if isinstance(error, str) and NONSENSICAL in error.lower():
        raise NonsensicalContentError(
            data.get("message")
            or "Your dream description appears to be nonsensical. Please describe your dream using real words."
        )

    try:
        analysis = DreamAnalysis.model_validate(data)
    except ValidationError as e:
        raise ShapeFailure(f"Generator reply does not match the analysis shape: {e}") from e

    if len(analysis.dream_narrative) < MIN_NARRATIVE_LENGTH:
        raise ShapeFailure("Generated analysis appears incomplete")
    return analysis


class GenerationGateway:
    def __init__(self, client: CompletionClient, timeout: float = DEFAULT_TIMEOUT):
        self.client = client
        self.timeout = timeout

    async def generate(self, request: DreamRequest) -> DreamAnalysis:
        """Single attempt at a remote analysis. Raises GenerationError on any failure."""
        user_prompt = build_user_prompt(request)
        logger.debug(
            "Calling generator: system prompt %d chars, user prompt %d chars, timeout %ss",
            len(SYSTEM_PROMPT), len(user_prompt), self.timeout,
        )

        try:
            content = await race_with_timeout(
                self.client.complete(SYSTEM_PROMPT, user_prompt, expect_json=True),
                self.timeout,
            )
        except (GenerationError, NonsensicalContentError):
            raise
        except Exception as e:
            raise classify_upstream_error(e) from e

        if not isinstance(content, str) or not content.strip():
            raise ShapeFailure("Invalid response from generator: empty content")

        logger.debug("Raw generator output (first 500 chars): %s", content[:500])
        return parse_analysis(content)
