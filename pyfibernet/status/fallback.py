# pyFiberNet Module - AI Fallback Classifier
# -*- coding: utf-8 -*-
"""
 Secondary outage status source backed by a text-generation model (Gemini)

 Only consulted when the primary source answers unknown. Uses the same
 three-state contract; no credential, a failed call or an answer that does
 not parse all map to unknown.

 Class
    AIFallbackClassifier(api_key, model, timeout, cache_ttl, api_url, session)

 Functions
    classify(service_key, cache_hint_key, force)   # Return RawStatusResult (never raises)
"""
import json
import logging
import re
from typing import Optional

import requests

from pyfibernet.decorators import uses_cache
from pyfibernet.exceptions import ClassificationUnavailable
from pyfibernet.status.models import RawState, RawStatusResult
from pyfibernet.status.provider_base import StatusProviderBase

log = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta"

PROMPT = (
    "Você é um monitor de status de serviços online no Brasil. "
    "O serviço '{service_key}' está com instabilidade, queda ou problemas generalizados neste momento? "
    "Responda somente com JSON no formato {{\"hasIssues\": true|false, \"message\": \"resumo curto\"}}."
)

_JSON_RE = re.compile(r'\{.*\}', re.DOTALL)


def parse_answer(text: str) -> Optional[dict]:
    """Pull the JSON object out of a model answer (may be wrapped in code fences)."""
    match = _JSON_RE.search(text or "")
    if not match:
        return None
    try:
        answer = json.loads(match.group(0))
    except ValueError:
        return None
    return answer if isinstance(answer, dict) else None


class AIFallbackClassifier(StatusProviderBase):
    label = "ai-fallback"

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL, timeout: float = 15,
                 cache_ttl: float = 300, api_url: str = DEFAULT_API_URL, poolmaxsize: int = 10,
                 session: Optional[requests.Session] = None):
        super().__init__(timeout=timeout, poolmaxsize=poolmaxsize, session=session)
        self.api_key = api_key
        self.model = model
        self.api_url = api_url.rstrip('/')
        self.apicache = {}  # holds the cached answers per cache hint key
        self.apicachetime = {}  # holds the cached answer timestamps
        self.apicacheexpire = cache_ttl  # seconds to expire cache

    def available(self) -> bool:
        return bool(self.api_key)

    @uses_cache('[args-cache_hint_key]', cacheable=lambda r: r.state != RawState.UNKNOWN)
    def classify(self, service_key: str, cache_hint_key: str, force: bool = False) -> RawStatusResult:
        try:
            return self._ask(service_key)
        except ClassificationUnavailable as exc:
            return self._unknown(service_key, str(exc))

    def _ask(self, service_key: str) -> RawStatusResult:
        if not self.available():
            raise ClassificationUnavailable("No AI credential configured")
        url = f"{self.api_url}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": PROMPT.format(service_key=service_key)}]}],
            "generationConfig": {"temperature": 0, "responseMimeType": "application/json"},
        }
        log.debug(f" -- {self.label}: Asking {self.model} about {service_key}")
        try:
            r = self.session.post(url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise ClassificationUnavailable(f"Timeout waiting for {self.model}")
        except requests.exceptions.RequestException as exc:
            raise ClassificationUnavailable(f"Unable to reach AI provider: {exc}")
        if r.status_code != 200:
            log.error(f"AI provider returned {r.status_code} for {service_key}")
            raise ClassificationUnavailable(f"AI provider error {r.status_code}")
        try:
            text = str(r.json()["candidates"][0]["content"]["parts"][0]["text"])
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ClassificationUnavailable(f"Unexpected AI response shape: {exc}")

        answer = parse_answer(text)
        if answer is None or not isinstance(answer.get("hasIssues"), bool):
            raise ClassificationUnavailable(f"Unparseable AI answer: {text[:80]!r}")
        message = str(answer.get("message") or "")
        state = RawState.DEGRADED if answer["hasIssues"] else RawState.OPERATIONAL
        log.info(f"AI fallback for {service_key}: {state.value}")
        return self._result(state, message)
