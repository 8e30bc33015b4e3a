"""
LLM client abstraction supporting OpenAI and Anthropic.
Provides async completion with structured JSON output and image generation.
"""

import json
from typing import Optional, Dict, Any, List
from enum import Enum

from openai import AsyncOpenAI
from anthropic import AsyncAnthropic

from ollie.shared.config import settings
from ollie.shared.exceptions import OllieError


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LLMError(OllieError):
    """Base error for LLM operations."""
    pass


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def normalize_turns(messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
    """
    Shape a conversation for the chat APIs: starts with a user turn and
    alternates roles. Consecutive turns of the same role are merged.
    """
    turns: List[Dict[str, str]] = []
    for message in messages:
        role, content = message.get("role"), message.get("content") or ""
        if role not in ("user", "assistant") or not content.strip():
            continue
        if not turns and role != "user":
            continue
        if turns and turns[-1]["role"] == role:
            turns[-1] = {"role": role, "content": turns[-1]["content"] + "\n\n" + content}
        else:
            turns.append({"role": role, "content": content})
    return turns


class LLMClient:
    """Unified LLM client supporting multiple providers."""

    def __init__(
        self,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ):
        self.provider = provider or settings.llm.provider
        self.model = model or settings.llm.default_model
        self.temperature = temperature if temperature is not None else settings.llm.temperature
        self.max_tokens = max_tokens or settings.llm.max_tokens

        if self.provider == LLMProvider.OPENAI:
            api_key = api_key or settings.llm.openai_api_key
            if not api_key:
                raise LLMError("OpenAI API key not configured")
            self.client = AsyncOpenAI(api_key=api_key)
        elif self.provider == LLMProvider.ANTHROPIC:
            api_key = api_key or settings.llm.anthropic_api_key
            if not api_key:
                raise LLMError("Anthropic API key not configured")
            self.client = AsyncAnthropic(api_key=api_key)
        else:
            raise LLMError(f"Unsupported provider: {self.provider}")

    async def get_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> str:
        """Get a single-turn text completion."""
        return await self.get_chat_completion(
            [{"role": "user", "content": prompt}],
            system_prompt=system_prompt,
            **kwargs
        )

    async def get_chat_completion(
        self,
        messages: List[Dict[str, str]],
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_format: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> str:
        """
        Get completion for a multi-turn conversation.

        Args:
            messages: Conversation as role/content dicts (user/assistant)
            system_prompt: Optional system prompt
            model: Override default model
            temperature: Override default temperature
            max_tokens: Override default max_tokens
            response_format: For structured output (OpenAI) or JSON schema (Anthropic)
            **kwargs: Additional provider-specific parameters

        Returns:
            Completion text
        """
        model = model or self.model
        temperature = temperature if temperature is not None else self.temperature
        max_tokens = max_tokens or self.max_tokens
        messages = normalize_turns(messages)
        if not messages:
            raise LLMError("Conversation has no user turn")

        try:
            if self.provider == LLMProvider.OPENAI:
                return await self._openai_completion(
                    messages=messages,
                    system_prompt=system_prompt,
                    model=model,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    response_format=response_format,
                    **kwargs
                )
            return await self._anthropic_completion(
                messages=messages,
                system_prompt=system_prompt,
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                response_format=response_format,
                **kwargs
            )
        except Exception as e:
            raise LLMError(f"LLM completion failed: {str(e)}") from e

    async def _openai_completion(
        self,
        messages: List[Dict[str, str]],
        system_prompt: Optional[str],
        model: str,
        temperature: float,
        max_tokens: int,
        response_format: Optional[Dict[str, Any]],
        **kwargs
    ) -> str:
        """OpenAI-specific completion."""
        request_messages = []
        if system_prompt:
            request_messages.append({"role": "system", "content": system_prompt})
        request_messages.extend(messages)

        completion_kwargs = {
            "model": model,
            "messages": request_messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs
        }

        if response_format:
            completion_kwargs["response_format"] = response_format

        response = await self.client.chat.completions.create(**completion_kwargs)
        return response.choices[0].message.content or ""

    async def _anthropic_completion(
        self,
        messages: List[Dict[str, str]],
        system_prompt: Optional[str],
        model: str,
        temperature: float,
        max_tokens: int,
        response_format: Optional[Dict[str, Any]],
        **kwargs
    ) -> str:
        """Anthropic-specific completion."""
        # Anthropic uses system parameter, not system message
        completion_kwargs = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": messages,
            **kwargs
        }

        system = system_prompt or ""
        if response_format:
            schema = response_format.get("schema", {})
            if schema:
                system += (
                    "\n\nYou must respond with valid JSON matching this schema: "
                    f"{json.dumps(schema, indent=2)}"
                )
        if system:
            completion_kwargs["system"] = system

        response = await self.client.messages.create(**completion_kwargs)
        return response.content[0].text

    async def get_structured_completion(
        self,
        prompt: str,
        schema: Dict[str, Any],
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Get structured JSON completion.

        Returns:
            Parsed JSON response as dict
        """
        if self.provider == LLMProvider.OPENAI:
            response_format = {
                "type": "json_schema",
                "json_schema": {
                    "name": "response",
                    "schema": schema,
                    "strict": True
                }
            }
        else:
            # Anthropic uses schema in system prompt
            response_format = {"schema": schema}

        response_text = await self.get_chat_completion(
            [{"role": "user", "content": prompt}],
            system_prompt=system_prompt,
            response_format=response_format,
            **kwargs
        )

        try:
            return json.loads(strip_code_fences(response_text))
        except json.JSONDecodeError as e:
            raise LLMError(
                f"Failed to parse JSON response: {str(e)}\nResponse: {response_text[:200]}"
            ) from e

    async def generate_image(
        self,
        prompt: str,
        model: Optional[str] = None,
        size: str = "1024x1024"
    ) -> Dict[str, str]:
        """
        Generate an image and return it base64-encoded.

        Returns:
            Dict with imageData (base64) and mimeType
        """
        if self.provider != LLMProvider.OPENAI:
            raise LLMError(f"Image generation not supported for provider: {self.provider}")

        try:
            response = await self.client.images.generate(
                model=model or settings.llm.image_model,
                prompt=prompt,
                size=size,
                n=1
            )
        except Exception as e:
            raise LLMError(f"Image generation failed: {str(e)}") from e

        image_data = response.data[0].b64_json if response.data else None
        if not image_data:
            raise LLMError("Image generation returned no image data")

        return {"imageData": image_data, "mimeType": "image/png"}
