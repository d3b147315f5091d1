from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Protocol

from ..schemas.state import AIConfig
from .types import ChatTurn


class LLMClientError(Exception):
    pass


class TextGenerator(Protocol):
    model: str

    def generate(self, prompt_text: str, *, system_text: Optional[str] = None, json_mode: bool = False) -> str:
        ...

    def chat(self, history: List[ChatTurn], *, system_text: Optional[str] = None) -> str:
        ...


class OpenAIClient:
    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        temperature: float = 0.7,
        max_output_tokens: int = 2000,
        timeout_s: int = 60,
    ) -> None:
        if not api_key:
            raise LLMClientError("Missing OpenAI API key. Set it in the AI settings or via OPENAI_API_KEY.")
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_s = timeout_s

        try:
            from openai import OpenAI
        except ImportError as e:  # pragma: no cover
            raise LLMClientError("OpenAI SDK not installed. Add 'openai' to dependencies.") from e
        self._client = OpenAI(api_key=api_key)

    def _complete(self, messages: List[Dict[str, str]], json_mode: bool) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_output_tokens,
            "timeout": self.timeout_s,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            resp = self._client.chat.completions.create(**kwargs)
        except Exception as e:
            raise LLMClientError(f"OpenAI request failed: {e}") from e
        choices = getattr(resp, "choices", None) or []
        if not choices:
            return ""
        return (choices[0].message.content or "").strip()

    def generate(self, prompt_text: str, *, system_text: Optional[str] = None, json_mode: bool = False) -> str:
        messages = [{"role": "system", "content": system_text}] if system_text else []
        messages.append({"role": "user", "content": prompt_text})
        return self._complete(messages, json_mode)

    def chat(self, history: List[ChatTurn], *, system_text: Optional[str] = None) -> str:
        messages = [{"role": "system", "content": system_text}] if system_text else []
        for turn in history:
            messages.append({"role": "assistant" if turn.role == "model" else "user", "content": turn.text})
        return self._complete(messages, json_mode=False)


class GeminiClient:
    def __init__(
        self,
        model: str,
        temperature: float = 0.7,
        api_key: Optional[str] = None,
        max_output_tokens: int = 2000,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

        try:
            from google import genai
            from google.genai import types
        except ImportError as e:  # pragma: no cover
            raise LLMClientError("google-genai SDK not installed. Add 'google-genai' to dependencies.") from e
        self._types = types
        try:
            # Without an explicit key the SDK reads GEMINI_API_KEY / GOOGLE_API_KEY.
            self._client = genai.Client(api_key=api_key) if api_key else genai.Client()
        except Exception as e:
            raise LLMClientError(f"Gemini client init failed: {e}") from e

    def _config(self, system_text: Optional[str], json_mode: bool) -> Any:
        return self._types.GenerateContentConfig(
            system_instruction=system_text,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json" if json_mode else "text/plain",
        )

    def _send(self, contents: Any, system_text: Optional[str], json_mode: bool) -> str:
        try:
            resp = self._client.models.generate_content(
                model=self.model,
                contents=contents,
                config=self._config(system_text, json_mode),
            )
        except Exception as e:
            raise LLMClientError(f"Gemini request failed: {e}") from e
        return (resp.text or "").strip()

    def generate(self, prompt_text: str, *, system_text: Optional[str] = None, json_mode: bool = False) -> str:
        return self._send(prompt_text, system_text, json_mode)

    def chat(self, history: List[ChatTurn], *, system_text: Optional[str] = None) -> str:
        contents = [
            self._types.Content(role=turn.role, parts=[self._types.Part.from_text(text=turn.text)])
            for turn in history
        ]
        return self._send(contents, system_text, json_mode=False)


def build_text_generator(ai_config: AIConfig, settings: Optional[Dict[str, Any]] = None) -> TextGenerator:
    """
    Construct the provider selected in the AI settings. Callers own the
    returned client and pass it into the pipeline.
    """
    settings = settings or {}
    max_output_tokens = int(settings.get("max_output_tokens", 2000))
    if ai_config.provider == "gpt":
        api_key = ai_config.openai_key or os.getenv(settings.get("openai_api_key_env", "OPENAI_API_KEY"))
        return OpenAIClient(
            api_key=api_key,
            model=ai_config.gpt_model,
            temperature=ai_config.temperature,
            max_output_tokens=max_output_tokens,
            timeout_s=int(settings.get("timeout_s", 60)),
        )
    return GeminiClient(
        model=ai_config.gemini_model or "gemini-2.5-flash",
        temperature=ai_config.temperature,
        api_key=os.getenv(settings.get("gemini_api_key_env", "GEMINI_API_KEY")),
        max_output_tokens=max_output_tokens,
    )
