"""AI analysis adapters: narrative inventory summary and anomaly detection.

Both talk to an OpenAI-compatible chat completions endpoint (OpenRouter by
default) through httpx. Prompts are Jinja2 templates under
patrimonio/prompts. Any failure, including an empty or malformed answer,
surfaces as ExternalServiceError; nothing is retried and nothing is stored.
"""
import json
import os
import logging

import httpx
import pydantic
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from patrimonio.config import settings
from patrimonio.errors import ExternalServiceError
from patrimonio.schemas.ai import Anomaly, AnomalyInputItem, AnomalyReport, InventorySummaryInput
from patrimonio.services.export_service import format_brl

logger = logging.getLogger(__name__)

_PROMPT_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "prompts")

_prompts = Environment(
    loader=FileSystemLoader(_PROMPT_DIR),
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)
_prompts.filters["brl"] = format_brl


def render_prompt(name: str, **context) -> str:
    return _prompts.get_template(name).render(**context)


class AIClient:
    """Minimal chat completions client.

    http_client may be injected (tests pass one built on httpx.MockTransport);
    otherwise a short-lived client is opened per request.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "google/gemini-2.0-flash-001",
        timeout: float = 60.0,
        http_client: httpx.Client | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._http_client = http_client

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": "Patrimonio",
        }

    def complete(self, prompt: str, *, json_output: bool = False) -> str:
        """Send one user message and return the text of the first choice."""
        if not self._api_key:
            logger.warning("Chamada de IA sem AI_API_KEY configurado")
            raise ExternalServiceError()

        payload: dict = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if json_output:
            payload["response_format"] = {"type": "json_object"}

        client = self._http_client or httpx.Client(timeout=self._timeout)
        try:
            response = client.post(
                f"{self._base_url}/chat/completions",
                headers=self._get_headers(),
                json=payload,
            )
            if response.status_code != 200:
                logger.warning("Provedor de IA respondeu %s: %s", response.status_code, response.text[:500])
                raise ExternalServiceError()
            data = response.json()
        except httpx.HTTPError as e:
            logger.warning("Falha de comunicação com o provedor de IA: %s", e)
            raise ExternalServiceError() from e
        except ValueError as e:
            logger.warning("Resposta do provedor de IA não é JSON: %s", e)
            raise ExternalServiceError() from e
        finally:
            if self._http_client is None:
                client.close()

        if not isinstance(data, dict) or "error" in data:
            logger.warning("Provedor de IA retornou erro: %s", data)
            raise ExternalServiceError()

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            logger.warning("Resposta do provedor de IA sem choices válidos: %s", str(data)[:500])
            raise ExternalServiceError()

        message = choices[0].get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            logger.warning("Resposta do provedor de IA vazia")
            raise ExternalServiceError()
        return content.strip()


def get_ai_client() -> AIClient:
    return AIClient(
        api_key=settings.AI_API_KEY,
        base_url=settings.AI_BASE_URL,
        model=settings.AI_MODEL,
        timeout=settings.AI_TIMEOUT,
    )


def summarize_inventory(client: AIClient, data: InventorySummaryInput) -> str:
    """Executive summary in Brazilian Portuguese, plain text with bullet points."""
    prompt = render_prompt("inventory_summary.j2", data=data)
    summary = client.complete(prompt)
    logger.info("Resumo de IA gerado (%d caracteres)", len(summary))
    return summary


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_anomalies(text: str) -> list[Anomaly]:
    try:
        report = AnomalyReport.model_validate(json.loads(_strip_fences(text)))
    except (ValueError, pydantic.ValidationError) as e:
        logger.warning("Resposta de anomalias malformada: %s", e)
        raise ExternalServiceError() from e
    return report.anomalies


def detect_anomalies(client: AIClient, items: list[AnomalyInputItem]) -> list[Anomaly]:
    """Value/location outliers among the given assets. An empty input yields no anomalies."""
    if not items:
        return []
    prompt = render_prompt("asset_anomalies.j2", items=items)
    anomalies = parse_anomalies(client.complete(prompt, json_output=True))
    logger.info("Análise de anomalias: %d itens, %d anomalias", len(items), len(anomalies))
    return anomalies
