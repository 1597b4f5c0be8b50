# pyFiberNet Module - Status Source Client
# -*- coding: utf-8 -*-
"""
 Primary outage status source

 Scrapes the public outage page of a service and classifies its headline
 with a small set of Portuguese keyword rules. When a reports API key is
 configured the reports API is queried instead and the reports/baseline
 ratio is used.

 Class
    StatusSourceClient(url_template, timeout, poolmaxsize, reports_api_key, reports_api_url, session)

 Functions
    fetch_status(service_key)    # Return RawStatusResult (never raises)
    classify_indicator(text)     # Return RawState for an indicator headline

 Notes
    The keyword rules only recognise the two negations "não indicam" and
    "sem problemas". Any other phrasing with a problem keyword is degraded.
"""
import logging
from typing import Optional

import requests
from bs4 import BeautifulSoup

from pyfibernet.exceptions import SourceUnreachable
from pyfibernet.status.models import MINOR_RATIO, RawState, RawStatusResult
from pyfibernet.status.provider_base import StatusProviderBase

log = logging.getLogger(__name__)

DEFAULT_URL_TEMPLATE = "https://downdetector.com.br/fora-do-ar/{service_key}/"
DEFAULT_REPORTS_API_URL = "https://downdetectorapi.com"

# The source blocks naive clients - look like a regular browser
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
                  "Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

INDICATOR_SELECTORS = (".entry-title", "h2.h2", "div.indicator-title")
PROBLEM_KEYWORDS = ("problema", "falha", "instabilidade")
NEGATION_MARKERS = ("não indicam", "sem problemas")


def classify_indicator(text: Optional[str]) -> RawState:
    """
    Classify an indicator headline.

    Degraded only if a problem keyword is present and no negation marker
    is: "não indicam problemas no momento" stays operational.
    """
    text = (text or "").lower()
    if any(word in text for word in PROBLEM_KEYWORDS):
        if not any(marker in text for marker in NEGATION_MARKERS):
            return RawState.DEGRADED
    return RawState.OPERATIONAL


def extract_indicator(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for selector in INDICATOR_SELECTORS:
        element = soup.select_one(selector)
        if element is not None:
            text = element.get_text(" ", strip=True)
            if text:
                return text
    return ""


class StatusSourceClient(StatusProviderBase):
    label = "downdetector"

    def __init__(self, url_template: str = DEFAULT_URL_TEMPLATE, timeout: float = 10, poolmaxsize: int = 10,
                 reports_api_key: Optional[str] = None, reports_api_url: str = DEFAULT_REPORTS_API_URL,
                 session: Optional[requests.Session] = None):
        super().__init__(timeout=timeout, poolmaxsize=poolmaxsize, session=session)
        self.url_template = url_template
        self.reports_api_key = reports_api_key
        self.reports_api_url = reports_api_url.rstrip('/')
        if self.reports_api_key:
            self.label = "downdetector-api"

    def available(self) -> bool:
        return True

    def fetch_status(self, service_key: str) -> RawStatusResult:
        try:
            if self.reports_api_key:
                return self._fetch_reports(service_key)
            return self._fetch_page(service_key)
        except SourceUnreachable as exc:
            return self._unknown(service_key, str(exc))

    def _get(self, url: str, **kwargs) -> requests.Response:
        try:
            r = self.session.get(url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout:
            raise SourceUnreachable(f"Timeout waiting for {url}")
        except requests.exceptions.RequestException as exc:
            raise SourceUnreachable(f"Unable to connect to {url}: {exc}")
        if r.status_code in (403, 429, 503):
            log.warning(f"{r.status_code} from {url} - status source is blocking requests")
            raise SourceUnreachable(f"Blocked by status source ({r.status_code})")
        if not 200 <= r.status_code < 300:
            raise SourceUnreachable(f"Unexpected HTTP status {r.status_code} from {url}")
        return r

    def _fetch_page(self, service_key: str) -> RawStatusResult:
        url = self.url_template.format(service_key=service_key)
        log.debug(f" -- {self.label}: Request {url}")
        r = self._get(url, headers=BROWSER_HEADERS)
        indicator = extract_indicator(r.text or "")
        if not indicator:
            # Challenge pages and layout changes carry no headline
            raise SourceUnreachable("No status indicator found on page")
        state = classify_indicator(indicator)
        if state == RawState.DEGRADED:
            log.info(f"[ALERT] {service_key}: detected -> \"{indicator[:50]}...\"")
        return self._result(state, indicator.lower())

    def _fetch_reports(self, service_key: str) -> RawStatusResult:
        url = f"{self.reports_api_url}/v2/companies/{service_key}/reports"
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self.reports_api_key}"}
        log.debug(f" -- {self.label}: Request {url}")
        r = self._get(url, headers=headers, params={"per_page": 1})
        try:
            rows = r.json().get("data") or []
            if not isinstance(rows, list):
                raise SourceUnreachable(f"Unexpected reports payload: 'data' is {type(rows).__name__}")
            latest = rows[0] if rows else None
            if latest is None:
                return self._result(RawState.OPERATIONAL, "no reports")
            count = float(latest.get("reportCount") or 0)
            baseline = float(latest.get("baseline") or 0)
        except (ValueError, AttributeError, TypeError, KeyError, IndexError) as exc:
            raise SourceUnreachable(f"Unable to parse reports payload: {exc}")
        ratio = count / baseline if baseline > 0 else 0.0
        text = f"{int(count)} reports (baseline {int(baseline)})"
        if ratio > MINOR_RATIO:
            return self._result(RawState.DEGRADED, text, ratio)
        return self._result(RawState.OPERATIONAL, text, ratio)
