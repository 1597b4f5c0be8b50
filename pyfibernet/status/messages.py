# -*- coding: utf-8 -*-
"""
 Helpers for the support chat: find which tracked service a customer is
 talking about and render a ServiceStatus as a short message (pt-BR)
"""
import re
from typing import Iterable, Optional

from pyfibernet.status.models import ServiceStatus, StatusState, TrackedService
from pyfibernet.status.source import DEFAULT_URL_TEMPLATE

STATE_EMOJI = {
    StatusState.OPERATIONAL: "✅",
    StatusState.MINOR: "⚠️",
    StatusState.MAJOR: "🔴",
    StatusState.CRITICAL: "🚨",
    StatusState.UNKNOWN: "❔",
}

STATE_TEXT = {
    StatusState.OPERATIONAL: "Funcionando Normalmente",
    StatusState.MINOR: "Instabilidade Leve",
    StatusState.MAJOR: "Problemas Significativos",
    StatusState.CRITICAL: "Fora do Ar",
    StatusState.UNKNOWN: "Status Indisponível",
}


def _keywords(service: TrackedService):
    words = [service.key, service.key.replace('-', ' '), service.name] + list(service.aliases)
    return {w.lower() for w in words if w}


def detect_service(text: str, services: Iterable[TrackedService]) -> Optional[str]:
    """Return the key of the first tracked service mentioned in text (whole words only)."""
    lower = (text or "").lower()
    if not lower:
        return None
    for service in services:
        for word in sorted(_keywords(service), key=len, reverse=True):
            if re.search(r'(?<!\w)' + re.escape(word) + r'(?!\w)', lower):
                return service.key
    return None


def format_status_message(status: ServiceStatus, url_template: str = DEFAULT_URL_TEMPLATE) -> str:
    emoji = STATE_EMOJI[status.state]
    text = STATE_TEXT[status.state]
    header = f"{emoji} {status.display_name}: {text}"

    if status.state == StatusState.OPERATIONAL:
        return (f"{header}\n\nO serviço está funcionando normalmente. "
                "Se você está com problemas, pode ser sua conexão local. Tente reiniciar seu roteador!")
    if status.state == StatusState.UNKNOWN:
        return (f"{header}\n\nNão foi possível confirmar o status de {status.display_name} agora. "
                "Tente novamente em alguns minutos.")

    lines = [header, ""]
    if status.report_signal > 0:
        lines.append(f"📈 {round(status.report_signal * 100)}% do volume normal de relatos")
    lines.append(f"💡 A instabilidade é do próprio {status.display_name}, não da sua conexão!")
    lines.append("")
    lines.append("🔍 Acompanhe em tempo real:")
    lines.append(url_template.format(service_key=status.service_key))
    return "\n".join(lines)
