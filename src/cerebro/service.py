"""
Classification service for Cerebro.

The model side of the classify-entry contract: prompt a language model with
the capture text and return its JSON verdict. Supports Gemini (default),
Anthropic and OpenAI.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any

import httpx

from cerebro.config import load_config
from cerebro.errors import ClassificationServiceError

# Default models for each provider
DEFAULT_MODELS = {
    "gemini": "gemini-flash-lite-latest",
    "anthropic": "claude-haiku-4-5-20251001",
    "openai": "gpt-4o-mini",
}

BASE_URLS = {
    "gemini": "https://generativelanguage.googleapis.com/v1beta",
    "anthropic": "https://api.anthropic.com/v1",
    "openai": "https://api.openai.com/v1",
}

JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


CLASSIFIER_PROMPT = """You classify short captures for Cerebro, a personal productivity app.
Captures are usually written in Brazilian Portuguese.

## Context
Today is {today}.

## Categories (category_slug)
- home: chores, personal life, family
- work: job, professional projects
- uni: studies, university, courses
- ideas: ideas, brainstorms, future projects

## Types (entry_type)
- task: something to do
- note: plain information
- insight: an idea or reflection
- bookmark: a link or reference
- goal: a recurring objective with a number ("correr 5km", "estudar 2h")

## Rules
1. Priority. Look for urgency words:
   - urgent: "urgente", "urgência", "agora", "imediato", "asap", "crítico", "pra ontem"
   - high: "importante", "prioridade", "essencial", "preciso muito"
   - medium: "quando puder", "sem pressa", "depois"
   - low: "talvez", "um dia", "se der tempo", "opcional"
   If the text contains "urgente" or "pra ontem", priority MUST be "urgent" and type MUST be "task".
2. A capture starting with an action verb ("comprar", "ligar", "pagar", "agendar") is a task.
3. When unsure, category is "ideas" or "home"; an action is a task, information is a note.
4. Due dates: resolve mentions like "amanhã", "sexta", "semana que vem" to an ISO 8601 date.
5. Status: "pending" by default; "in_progress" for "estou fazendo", "comecei a", "em andamento",
   "lendo"; "done" for "já fiz", "terminei", "concluído", "pago", "comprado".
6. Goals: set period_type to "daily" ("todo dia", "por dia"), "weekly" ("semana", "por semana")
   or "monthly" ("mês", "mensal"), with a numeric target and a unit.
7. Several items ("comprar: leite, ovos, pão") become a checklist of {{"text": ..., "done": false}}.

## Output
Return ONLY valid JSON matching this schema:
```json
{{
  "_thought_process": "short analysis",
  "category_slug": "home|work|uni|ideas",
  "entry_type": "task|note|insight|bookmark|goal",
  "status": "pending|in_progress|done",
  "metadata": {{
    "summary": "short summary",
    "tags": ["tag1", "tag2"],
    "emoji": "🎯",
    "target": null,
    "unit": null,
    "period_type": "daily|weekly|monthly|null",
    "due_date": null,
    "priority": "low|medium|high|urgent|null",
    "checklist": [{{"text": "item 1", "done": false}}]
  }}
}}
```

## Capture
```
{content}
```"""


def build_prompt(content: str, today: datetime | None = None) -> str:
    """Render the classification prompt for one capture."""
    today = today or datetime.now(timezone.utc)
    return CLASSIFIER_PROMPT.format(content=content, today=today.isoformat())


def extract_json(text: str) -> dict[str, Any]:
    """
    Pull the JSON object out of a model reply.

    Tolerates markdown fences and chatter around the object.
    """
    match = JSON_OBJECT.search(text)
    data = json.loads(match.group(0) if match else text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class ClassificationService:
    """Calls a language model to classify captures."""

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or load_config()
        self.llm_config = self.config.get("llm", {})
        self.timeout = float(self.config.get("classifier", {}).get("timeout") or 30.0)

        self.provider = self.llm_config.get("provider", "gemini")
        if self.provider not in DEFAULT_MODELS:
            raise ValueError(f"Unknown LLM provider: {self.provider}")

        self.api_key = self.llm_config.get(f"{self.provider}_api_key")
        if not self.api_key:
            raise ValueError(
                f"{self.provider.title()} API key not found. "
                f"Set {self.provider.upper()}_API_KEY env var or add to config."
            )

        self.model = self.llm_config.get("model") or DEFAULT_MODELS[self.provider]
        self.base_url = self.llm_config.get("base_url", BASE_URLS[self.provider])

    def classify(self, content: str, today: datetime | None = None) -> dict[str, Any]:
        """
        Classify content and return the model's JSON object.

        Raises ClassificationServiceError on empty input, HTTP failures or a
        reply without a JSON object.
        """
        if not content or not content.strip():
            raise ClassificationServiceError("Content is required", provider=self.provider)

        prompt = build_prompt(content, today)

        try:
            if self.provider == "gemini":
                text = self._call_gemini(prompt)
            elif self.provider == "anthropic":
                text = self._call_anthropic(prompt)
            else:
                text = self._call_openai(prompt)
        except httpx.HTTPStatusError as e:
            raise ClassificationServiceError(
                f"API error {e.response.status_code}: {e.response.text}",
                provider=self.provider,
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ClassificationServiceError(str(e), provider=self.provider) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ClassificationServiceError(
                f"Unexpected response payload: {e}", provider=self.provider
            ) from e

        if not text:
            raise ClassificationServiceError("Empty AI response", provider=self.provider)

        try:
            return extract_json(text)
        except ValueError as e:
            raise ClassificationServiceError(
                f"Reply is not a JSON object: {e}", provider=self.provider
            ) from e

    def _call_gemini(self, prompt: str) -> str:
        """Call Gemini generateContent with a JSON response type."""
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json={
                    "contents": [{"parts": [{"text": prompt}]}],
                    "generationConfig": {"responseMimeType": "application/json"},
                },
            )
            response.raise_for_status()
            return response.json()["candidates"][0]["content"]["parts"][0]["text"]

    def _call_anthropic(self, prompt: str) -> str:
        """Call Anthropic API."""
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(
                f"{self.base_url}/messages",
                headers={
                    "x-api-key": self.api_key,
                    "Content-Type": "application/json",
                    "anthropic-version": "2023-06-01",
                },
                json={
                    "model": self.model,
                    "max_tokens": 1024,
                    "messages": [{"role": "user", "content": prompt}],
                    "temperature": 0.3,
                },
            )
            response.raise_for_status()
            return response.json()["content"][0]["text"]

    def _call_openai(self, prompt: str) -> str:
        """Call OpenAI API."""
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": prompt}],
                    "temperature": 0.3,
                    "response_format": {"type": "json_object"},
                },
            )
            response.raise_for_status()
            return response.json()["choices"][0]["message"]["content"]
