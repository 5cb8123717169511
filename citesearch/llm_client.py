"""OpenRouter (OpenAI-compatible) chat client and the model wrapper used by the pipeline."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, AsyncIterator

from citesearch.config import settings
from citesearch.services import logger as log_service


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class TextBlock:
    type: str
    text: str


@dataclass
class MessageResponse:
    content: list[Any]
    usage: Usage

    @property
    def text(self) -> str:
        return "".join(b.text for b in self.content if getattr(b, "type", None) == "text")


class OpenRouterStream:
    def __init__(self, stream_coro: Any):
        self._stream_coro = stream_coro
        self._stream: Any | None = None
        self._usage = Usage()
        self._finished = False

    async def __aenter__(self) -> "OpenRouterStream":
        self._stream = await self._stream_coro
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._stream is not None:
            await self._stream.close()

    async def _iter_text(self) -> AsyncIterator[str]:
        if self._stream is None:
            return
        async for chunk in self._stream:
            choices = getattr(chunk, "choices", None) or []
            usage = getattr(chunk, "usage", None)
            if usage:
                self._usage = Usage(
                    input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                    output_tokens=getattr(usage, "completion_tokens", 0) or 0,
                )

            if not choices:
                continue
            delta = getattr(choices[0], "delta", None)
            if not delta:
                continue
            text = getattr(delta, "content", None)
            if text:
                yield text
        self._finished = True

    @property
    def text_stream(self) -> AsyncIterator[str]:
        return self._iter_text()

    async def get_final_message(self) -> MessageResponse:
        if not self._finished:
            async for _ in self.text_stream:
                pass
        return MessageResponse(content=[], usage=self._usage)


class OpenRouterMessagesAdapter:
    def __init__(self, openai_client: Any):
        self._client = openai_client

    @staticmethod
    def _resolve_temperature(model: str, temperature: float | None) -> float | None:
        if temperature is None:
            return None
        # Some OpenAI GPT-5-compatible gateways reject anything but temperature=1.
        lowered = (model or "").lower()
        if "gpt-5" in lowered:
            return 1
        return temperature

    @staticmethod
    def _to_openai_messages(system: str, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        openai_messages: list[dict[str, Any]] = []
        if system:
            openai_messages.append({"role": "system", "content": system})
        for message in messages:
            openai_messages.append({"role": message["role"], "content": str(message["content"])})
        return openai_messages

    @staticmethod
    def _from_openai_response(response: Any) -> MessageResponse:
        choice = response.choices[0].message
        content: list[Any] = []

        text = getattr(choice, "content", None)
        if text:
            content.append(TextBlock(type="text", text=text))

        usage = getattr(response, "usage", None)
        mapped_usage = Usage(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )
        return MessageResponse(content=content, usage=mapped_usage)

    def _request_kwargs(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list[dict[str, Any]],
        temperature: float | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": self._to_openai_messages(system, messages),
            "max_tokens": max_tokens,
        }
        resolved = self._resolve_temperature(model, temperature)
        if resolved is not None:
            kwargs["temperature"] = resolved
        return kwargs

    async def create(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
    ) -> MessageResponse:
        kwargs = self._request_kwargs(
            model=model, max_tokens=max_tokens, system=system, messages=messages, temperature=temperature
        )
        response = await self._client.chat.completions.create(**kwargs)
        return self._from_openai_response(response)

    def stream(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
    ) -> OpenRouterStream:
        kwargs = self._request_kwargs(
            model=model, max_tokens=max_tokens, system=system, messages=messages, temperature=temperature
        )
        stream = self._client.chat.completions.create(
            **kwargs,
            stream=True,
            stream_options={"include_usage": True},
        )
        return OpenRouterStream(stream)


class OpenRouterClientAdapter:
    def __init__(self, openai_client: Any):
        self.messages = OpenRouterMessagesAdapter(openai_client)
        self.raw = openai_client


def get_client() -> OpenRouterClientAdapter:
    """Get OpenRouter client via OpenAI-compatible SDK."""
    from openai import AsyncOpenAI

    base_url = settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
    openai_client = AsyncOpenAI(
        api_key=settings.openrouter_api_key,
        base_url=base_url,
    )
    return OpenRouterClientAdapter(openai_client)


def get_model() -> str:
    """Get the active OpenRouter model id."""
    if settings.openrouter_model:
        return settings.openrouter_model
    return settings.default_model


_client: OpenRouterClientAdapter | None = None


def client() -> OpenRouterClientAdapter:
    """Get or create the LLM client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client


class ChatModel:
    """Language model handle passed into the answer pipeline.

    Temperature is a per-call argument; the instance holds no mutable
    sampling state, so one ChatModel can serve concurrent requests.
    """

    def __init__(
        self,
        model: str | None = None,
        *,
        max_tokens: int | None = None,
        llm: OpenRouterClientAdapter | None = None,
    ):
        self.model = model or get_model()
        self.max_tokens = max_tokens or int(settings.answer_max_tokens)
        self._llm = llm

    @property
    def llm(self) -> OpenRouterClientAdapter:
        return self._llm or client()

    async def invoke(
        self,
        prompt: str,
        *,
        system: str = "",
        temperature: float | None = None,
        caller: str = "chat_model.invoke",
    ) -> str:
        t0 = time.monotonic()
        try:
            response = await self.llm.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
            )
        except Exception as e:
            log_service.log_llm_call(
                model=self.model,
                caller=caller,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(e),
            )
            raise
        log_service.log_llm_call(
            model=self.model,
            caller=caller,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
        return response.text

    async def stream(
        self,
        *,
        system: str,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
        caller: str = "chat_model.stream",
    ) -> AsyncIterator[str]:
        t0 = time.monotonic()
        async with self.llm.messages.stream(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system,
            messages=messages,
            temperature=temperature,
        ) as stream:
            async for text in stream.text_stream:
                yield text
            final_msg = await stream.get_final_message()

        log_service.log_llm_call(
            model=self.model,
            caller=caller,
            input_tokens=final_msg.usage.input_tokens,
            output_tokens=final_msg.usage.output_tokens,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
