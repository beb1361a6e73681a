import base64
import os
import re
from abc import ABC, abstractmethod
from typing import Type, TypeVar

import anthropic
import ollama
from google import genai
from google.genai import types as genai_types
from openai import OpenAI
from pydantic import BaseModel, ValidationError

from intake import pdf_to_markdown
from logger import setup_logger
from schemas import EncodedFile

logger = setup_logger(__name__)

T = TypeVar("T", bound=BaseModel)

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapped around a JSON reply."""
    return _CODE_FENCE_RE.sub("", text.strip())


def _validate_reply(text: str | None, schema: Type[T]) -> T | None:
    if not text:
        logger.error("Empty reply, expected %s", schema.__name__)
        return None
    try:
        return schema.model_validate_json(strip_code_fences(text))
    except ValidationError as e:
        logger.error("Failed to parse response into schema: %s", e)
        logger.debug("Response content: %s", text)
        return None


class ModelProvider(ABC):
    """Abstract base class for model providers."""

    model_name: str

    @abstractmethod
    def generate_with_schema(
        self,
        prompt: str,
        schema: Type[T],
        system_prompt: str | None = None,
        attachment: EncodedFile | None = None,
    ) -> T | None:
        """
        Single-turn generation validated against a Pydantic schema.

        Returns None when the reply does not match the schema. Transport and
        API errors are raised by the underlying client.
        """


class OllamaModel(ModelProvider):
    """Ollama model provider."""

    def __init__(
        self,
        model_name: str,
        host: str = "http://localhost:11434",
        timeout: float | None = None,
    ):
        self.model_name = model_name
        self.client = ollama.Client(host, timeout=timeout)

    def generate_with_schema(
        self,
        prompt: str,
        schema: Type[T],
        system_prompt: str | None = None,
        attachment: EncodedFile | None = None,
    ) -> T | None:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        user_message = {"role": "user", "content": prompt}
        if attachment is not None:
            if attachment.is_image:
                user_message["images"] = [attachment.data]
            elif attachment.is_pdf:
                # Ollama models cannot read PDFs, send the extracted text instead
                document_text = pdf_to_markdown(attachment)
                user_message["content"] = f"{prompt}\n\nDocument:\n---\n{document_text}\n---"
        messages.append(user_message)

        response = self.client.chat(
            model=self.model_name, messages=messages, format=schema.model_json_schema()
        )
        return _validate_reply(response["message"]["content"], schema)


class OpenAIModel(ModelProvider):
    """OpenAI model provider."""

    def __init__(self, model_name: str, timeout: float | None = None):
        self.model_name = model_name
        self.client = OpenAI(api_key=os.environ["OPENAI_API_KEY"], timeout=timeout)

    @staticmethod
    def _attachment_part(attachment: EncodedFile) -> dict:
        data_url = f"data:{attachment.mime_type};base64,{attachment.data}"
        if attachment.is_image:
            return {"type": "image_url", "image_url": {"url": data_url}}
        return {
            "type": "file",
            "file": {"filename": "course.pdf", "file_data": data_url},
        }

    def generate_with_schema(
        self,
        prompt: str,
        schema: Type[T],
        system_prompt: str | None = None,
        attachment: EncodedFile | None = None,
    ) -> T | None:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        content = [{"type": "text", "text": prompt}]
        if attachment is not None:
            content.append(self._attachment_part(attachment))
        messages.append({"role": "user", "content": content})

        try:
            response = self.client.chat.completions.parse(
                model=self.model_name,
                messages=messages,
                response_format=schema,
            )
        except ValidationError as e:
            logger.error("Failed to parse response into schema: %s", e)
            return None

        message = response.choices[0].message
        if message.parsed is None:
            logger.error("No parsed content in reply, refusal: %s", message.refusal)
        return message.parsed


class AnthropicModel(ModelProvider):
    """Anthropic model provider."""

    def __init__(
        self, model_name: str, timeout: float | None = None, max_tokens: int = 8192
    ):
        self.model_name = model_name
        self.max_tokens = max_tokens
        self.client = anthropic.Anthropic(
            api_key=os.environ["ANTHROPIC_API_KEY"], timeout=timeout
        )

    @staticmethod
    def _attachment_block(attachment: EncodedFile) -> dict:
        return {
            "type": "image" if attachment.is_image else "document",
            "source": {
                "type": "base64",
                "media_type": attachment.mime_type,
                "data": attachment.data,
            },
        }

    def generate_with_schema(
        self,
        prompt: str,
        schema: Type[T],
        system_prompt: str | None = None,
        attachment: EncodedFile | None = None,
    ) -> T | None:
        schema_instruction = (
            "\n\nPlease respond with valid JSON that matches this schema: "
            f"{schema.model_json_schema()}"
        )
        content = []
        if attachment is not None:
            content.append(self._attachment_block(attachment))
        content.append({"type": "text", "text": prompt + schema_instruction})

        response = self.client.messages.create(
            model=self.model_name,
            max_tokens=self.max_tokens,
            system=system_prompt if system_prompt else anthropic.NotGiven(),
            messages=[{"role": "user", "content": content}],
        )
        return _validate_reply(response.content[0].text, schema)


class GeminiModel(ModelProvider):
    """Google Gemini model provider."""

    def __init__(self, model_name: str, timeout: float | None = None):
        self.model_name = model_name
        http_options = None
        if timeout is not None:
            # google-genai expects milliseconds
            http_options = genai_types.HttpOptions(timeout=int(timeout * 1000))
        self.client = genai.Client(
            api_key=os.environ["GEMINI_API_KEY"], http_options=http_options
        )

    def generate_with_schema(
        self,
        prompt: str,
        schema: Type[T],
        system_prompt: str | None = None,
        attachment: EncodedFile | None = None,
    ) -> T | None:
        contents = []
        if attachment is not None:
            contents.append(
                genai_types.Part.from_bytes(
                    data=base64.b64decode(attachment.data),
                    mime_type=attachment.mime_type,
                )
            )
        contents.append(prompt)

        config = genai_types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
            system_instruction=system_prompt,
        )
        response = self.client.models.generate_content(
            model=self.model_name, contents=contents, config=config
        )
        if isinstance(response.parsed, schema):
            return response.parsed
        return _validate_reply(response.text, schema)


MODEL_MAPPING = {
    "Gemini 2.5 Flash (Google)": ("gemini", "gemini-2.5-flash"),
    "Gemini 2.5 Pro (Google)": ("gemini", "gemini-2.5-pro"),
    "GPT 4.1 (OpenAI)": ("openai", "gpt-4.1"),
    "GPT 4.1 mini (OpenAI)": ("openai", "gpt-4.1-mini"),
    "Claude Haiku (Anthropic)": ("anthropic", "claude-3-5-haiku-latest"),
    "Claude Sonnet 4 (Anthropic)": ("anthropic", "claude-sonnet-4-20250514"),
    "Gemma3 (Ollama)": ("ollama", "gemma3:latest"),
    "Qwen3 (Ollama)": ("ollama", "qwen3:latest"),
}


def get_model(alias: str, timeout: float | None = None) -> ModelProvider:
    provider, model_name = MODEL_MAPPING[alias]
    if provider == "gemini":
        return GeminiModel(model_name, timeout=timeout)
    if provider == "openai":
        return OpenAIModel(model_name, timeout=timeout)
    if provider == "anthropic":
        return AnthropicModel(model_name, timeout=timeout)
    if provider == "ollama":
        return OllamaModel(model_name, timeout=timeout)
    raise NotImplementedError(f"model not supported: {alias}")
