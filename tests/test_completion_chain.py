import asyncio
import dataclasses
import sys
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from jobportal.ai.factory import generation_enabled, get_completion_client  # noqa: E402
from jobportal.ai.fallback import FallbackCompletionClient  # noqa: E402
from jobportal.ai.providers.openai_provider import OpenAICompletionProvider  # noqa: E402
from jobportal.ai.types import (  # noqa: E402
    CompletionAuthError,
    CompletionError,
    CompletionMalformed,
    CompletionRateLimited,
    CompletionTimeout,
    CompletionUnavailable,
)
from jobportal.core.config import settings  # noqa: E402

_REQUEST = httpx.Request("POST", "https://llm.example.test/v1/chat/completions")


class ScriptedClient:
    def __init__(self, reply=None, error=None, delay=0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = 0

    async def complete(self, prompt, *, max_tokens, system_prompt=None, budget_s=None):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


def _openai_stub(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FallbackChainTests(unittest.IsolatedAsyncioTestCase):
    async def test_primary_success_skips_fallbacks(self):
        primary = ScriptedClient("primary text")
        backup = ScriptedClient("backup text")
        chain = FallbackCompletionClient([("a", primary), ("b", backup)], timeout_s=1)
        self.assertEqual(await chain.complete("p", max_tokens=10), "primary text")
        self.assertEqual(backup.calls, 0)

    async def test_failures_and_timeouts_move_down_the_chain(self):
        chain = FallbackCompletionClient(
            [
                ("slow", ScriptedClient("late", delay=0.5)),
                ("limited", ScriptedClient(error=CompletionRateLimited("429"))),
                ("ok", ScriptedClient("third time")),
            ],
            timeout_s=0.05,
        )
        with self.assertLogs("jobportal.ai.fallback", level="WARNING") as logs:
            self.assertEqual(await chain.complete("p", max_tokens=10), "third time")
        self.assertTrue(any("model=slow" in line for line in logs.output))
        self.assertTrue(any("code=rate_limited" in line for line in logs.output))

    async def test_exhausted_chain_raises_unavailable(self):
        chain = FallbackCompletionClient(
            [("a", ScriptedClient(error=CompletionMalformed("empty")))],
            timeout_s=1,
        )
        with self.assertLogs("jobportal.ai.fallback", level="WARNING"):
            with self.assertRaises(CompletionUnavailable):
                await chain.complete("p", max_tokens=10)

    async def test_budget_is_shared_between_models(self):
        backup = ScriptedClient("backup text")
        chain = FallbackCompletionClient([("slow", ScriptedClient("late", delay=5)), ("b", backup)], timeout_s=8)
        with self.assertLogs("jobportal.ai.fallback", level="WARNING"):
            result = await asyncio.wait_for(chain.complete("p", max_tokens=10, budget_s=0.2), timeout=1)
        self.assertEqual(result, "backup text")
        self.assertEqual(backup.calls, 1)

    async def test_spent_budget_raises_unavailable(self):
        backup = ScriptedClient("backup text")
        chain = FallbackCompletionClient([("a", backup)], timeout_s=1)
        with self.assertLogs("jobportal.ai.fallback", level="WARNING"):
            with self.assertRaises(CompletionUnavailable):
                await chain.complete("p", max_tokens=10, budget_s=0)
        self.assertEqual(backup.calls, 0)

    def test_empty_chain_is_rejected(self):
        with self.assertRaises(ValueError):
            FallbackCompletionClient([], timeout_s=1)


class OpenAIProviderTests(unittest.IsolatedAsyncioTestCase):
    async def test_returns_stripped_content_and_sends_system_prompt(self):
        create = AsyncMock(return_value=_completion("  Hello there.  "))
        provider = OpenAICompletionProvider(model="m", client=_openai_stub(create))
        self.assertEqual(await provider.complete("hi", max_tokens=5, system_prompt="sys"), "Hello there.")
        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs["model"], "m")
        self.assertEqual(kwargs["max_tokens"], 5)
        self.assertEqual(kwargs["messages"][0], {"role": "system", "content": "sys"})
        self.assertNotIn("timeout", kwargs)

    async def test_budget_becomes_request_timeout(self):
        create = AsyncMock(return_value=_completion("Hello there."))
        provider = OpenAICompletionProvider(model="m", client=_openai_stub(create))
        await provider.complete("hi", max_tokens=5, budget_s=2.5)
        self.assertEqual(create.call_args.kwargs["timeout"], 2.5)

    async def test_empty_completion_is_malformed(self):
        provider = OpenAICompletionProvider(model="m", client=_openai_stub(AsyncMock(return_value=_completion(""))))
        with self.assertRaises(CompletionMalformed):
            await provider.complete("hi", max_tokens=5)

    async def test_sdk_errors_are_mapped(self):
        cases = [
            (
                openai.RateLimitError("slow down", response=httpx.Response(429, request=_REQUEST), body=None),
                CompletionRateLimited,
            ),
            (
                openai.AuthenticationError("bad key", response=httpx.Response(401, request=_REQUEST), body=None),
                CompletionAuthError,
            ),
            (openai.APITimeoutError(request=_REQUEST), CompletionTimeout),
            (openai.APIConnectionError(request=_REQUEST), CompletionError),
        ]
        for error, expected in cases:
            with self.subTest(error=type(error).__name__):
                provider = OpenAICompletionProvider(model="m", client=_openai_stub(AsyncMock(side_effect=error)))
                with self.assertRaises(expected):
                    await provider.complete("hi", max_tokens=5)


class CompletionFactoryTests(unittest.TestCase):
    def test_disabled_or_placeholder_key_yields_no_client(self):
        disabled = dataclasses.replace(settings, ai_generation_enabled=False, ai_api_key="sk-real")
        placeholder = dataclasses.replace(settings, ai_generation_enabled=True, ai_api_key="your_api_key_here")
        missing = dataclasses.replace(settings, ai_generation_enabled=True, ai_api_key=None)
        for candidate in (disabled, placeholder, missing):
            with self.subTest(key=candidate.ai_api_key):
                self.assertFalse(generation_enabled(candidate))
                self.assertIsNone(get_completion_client(candidate))

    def test_enabled_builds_model_chain(self):
        enabled = dataclasses.replace(
            settings,
            ai_generation_enabled=True,
            ai_api_key="sk-test-key",
            ai_model="primary/model",
            ai_fallback_models=("backup/one", "primary/model", "backup/two"),
        )
        client = get_completion_client(enabled)
        self.assertIsInstance(client, FallbackCompletionClient)
        self.assertEqual(client.models, ("primary/model", "backup/one", "backup/two"))
        self.assertIs(get_completion_client(enabled), client)


if __name__ == "__main__":
    unittest.main()
