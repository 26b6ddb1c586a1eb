"""OpenRouter-backed rewrite of product titles and descriptions."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import re
import time
from typing import Any, Callable

from ecoconv.config import EnhancerSettings
from ecoconv.errors import EnhancementRequestError

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 80
DESCRIPTION_MAX_CHARS = 500

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_RAW_JSON_RE = re.compile(r"\{.*\}", re.DOTALL)

SYSTEM_PROMPT = "Eres un experto en redacción de catálogos de productos para e-commerce. Responde en español."

PROMPT_TEMPLATE = """DATOS DEL PRODUCTO:
- Título original: {title}
- Descripción original: {description}
- Contexto: {context}

TAREA:
1. Genera un TÍTULO optimizado para e-commerce (máximo {title_max} caracteres)
2. Genera una DESCRIPCIÓN detallada y atractiva (máximo {description_max} caracteres)

REQUISITOS:
- El título debe ser claro, profesional y optimizado para SEO
- La descripción debe destacar beneficios, características y casos de uso
- Usa un tono profesional pero cercano
- Si faltan datos, sé creativo pero realista basándote en el contexto

FORMATO DE RESPUESTA (JSON):
{{"title": "Título optimizado aquí", "description": "Descripción detallada aquí"}}

Responde SOLO con el JSON, sin texto adicional."""


@dataclass(slots=True)
class Enhancement:
    """Rewritten copy, or the raw fields with ``succeeded=False``."""

    title: str
    description: str
    succeeded: bool
    model: str = ""
    error: str = ""


def _build_default_client(settings: EnhancerSettings) -> Any:
    try:
        from openai import OpenAI
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise EnhancementRequestError(
            model=settings.model,
            message=f"OpenAI SDK unavailable for OpenRouter client: {exc}",
        ) from exc

    return OpenAI(api_key=settings.api_key, base_url=settings.base_url)


def _is_retryable(exc: Exception) -> bool:
    status_code = getattr(exc, "status_code", None)
    if status_code in _RETRYABLE_STATUS_CODES:
        return True

    if isinstance(exc, (TimeoutError, ConnectionError)):
        return True

    return type(exc).__name__ in {
        "RateLimitError",
        "APITimeoutError",
        "APIConnectionError",
        "InternalServerError",
    }


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Pull the first JSON object out of fenced or chatty model output."""

    for pattern in (_FENCED_JSON_RE, _RAW_JSON_RE):
        match = pattern.search(text)
        if not match:
            continue
        try:
            parsed = json.loads(match.group(1) if match.groups() else match.group(0))
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _message_text(response: Any) -> str:
    choices = getattr(response, "choices", None)
    if not isinstance(choices, list) or not choices:
        return ""

    first = choices[0]
    message = getattr(first, "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if content is None and isinstance(first, dict):
        message_dict = first.get("message", {})
        if isinstance(message_dict, dict):
            content = message_dict.get("content")

    if isinstance(content, list):
        content = "".join(str(part.get("text", "")) for part in content if isinstance(part, dict))

    return str(content or "").strip()


class ProductEnhancer:
    """Rewrite one product's copy per call; failures degrade to the raw text."""

    def __init__(
        self,
        settings: EnhancerSettings,
        *,
        client: Any | None = None,
        max_retries: int = 2,
        retry_base_seconds: float = 0.25,
        temperature: float = 0.4,
        max_tokens: int = 600,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if retry_base_seconds < 0:
            raise ValueError("retry_base_seconds cannot be negative")
        if max_tokens < 1:
            raise ValueError("max_tokens must be >= 1")

        self._settings = settings
        self._client = client or _build_default_client(settings)
        self._max_retries = max_retries
        self._retry_base_seconds = retry_base_seconds
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._sleep = sleep

    @property
    def model(self) -> str:
        return self._settings.model

    def enhance(self, raw_title: str, raw_description: str = "", context_hint: str = "") -> Enhancement:
        try:
            title, description = self._rewrite(raw_title, raw_description, context_hint)
        except EnhancementRequestError as exc:
            logger.warning("Enhancement failed for %r: %s", raw_title[:50], exc)
            return Enhancement(
                title=raw_title,
                description=raw_description,
                succeeded=False,
                model=self.model,
                error=str(exc),
            )
        return Enhancement(title=title, description=description, succeeded=True, model=self.model)

    def build_prompt(self, raw_title: str, raw_description: str, context_hint: str) -> str:
        return PROMPT_TEMPLATE.format(
            title=raw_title.strip(),
            description=raw_description.strip(),
            context=context_hint.strip(),
            title_max=TITLE_MAX_CHARS,
            description_max=DESCRIPTION_MAX_CHARS,
        )

    def _rewrite(self, raw_title: str, raw_description: str, context_hint: str) -> tuple[str, str]:
        response = self._request_completion(self.build_prompt(raw_title, raw_description, context_hint))
        text = _message_text(response)
        if not text:
            raise EnhancementRequestError(model=self.model, message="Completion returned empty text")

        parsed = extract_json_object(text)
        if parsed is None:
            raise EnhancementRequestError(model=self.model, message="Completion did not contain a JSON object")

        title = str(parsed.get("title") or "").strip()
        description = str(parsed.get("description") or "").strip()
        if not title and not description:
            raise EnhancementRequestError(model=self.model, message="Completion JSON has no title or description")
        return title[:TITLE_MAX_CHARS], description[:DESCRIPTION_MAX_CHARS]

    def _request_completion(self, prompt: str) -> Any:
        attempts = self._max_retries + 1
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                return self._client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                )
            except Exception as exc:  # pragma: no cover - covered via tests with stubs
                last_error = exc
                should_retry = attempt < self._max_retries and _is_retryable(exc)
                if not should_retry:
                    break
                delay = self._retry_base_seconds * (2**attempt)
                self._sleep(delay)

        detail = str(last_error) if last_error is not None else "unknown OpenRouter error"
        raise EnhancementRequestError(
            model=self.model,
            message=f"Completion request failed after {attempts} attempt(s): {detail}",
        ) from last_error
