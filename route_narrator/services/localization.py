from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

FALLBACK_LOCALE = "en"
GENERIC_INSTRUCTION = "Continue"

_TABLES: dict[str, dict[str, Any]] = {
    "en": {
        "modifiers": {
            "uturn": "around",
            "sharp right": "sharp right",
            "right": "right",
            "slight right": "slightly right",
            "straight": "straight",
            "slight left": "slightly left",
            "left": "left",
            "sharp left": "sharp left",
        },
        "instructions": {
            "depart": {"default": "Head out", "name": "Head out on {way_name}"},
            "arrive": {"default": "You have arrived at your destination", "name": "You have arrived at {way_name}"},
            "turn": {
                "default": "Turn {modifier}",
                "name": "Turn {modifier} onto {way_name}",
                "straight": "Go straight",
                "straight_name": "Go straight onto {way_name}",
                "uturn": "Make a U-turn",
                "uturn_name": "Make a U-turn on {way_name}",
            },
            "continue": {
                "default": "Continue {modifier}",
                "name": "Continue {modifier} on {way_name}",
                "straight": "Continue straight",
                "straight_name": "Continue on {way_name}",
                "uturn": "Make a U-turn",
            },
            "new name": {"default": "Continue {modifier}", "name": "Continue onto {way_name}"},
            "merge": {"default": "Merge {modifier}", "name": "Merge {modifier} onto {way_name}"},
            "on ramp": {"default": "Take the ramp on the {modifier}", "name": "Take the ramp onto {way_name}"},
            "off ramp": {"default": "Take the exit on the {modifier}", "name": "Take the exit onto {way_name}"},
            "fork": {"default": "Keep {modifier} at the fork", "name": "Keep {modifier} at the fork onto {way_name}"},
            "end of road": {
                "default": "Turn {modifier} at the end of the road",
                "name": "Turn {modifier} onto {way_name} at the end of the road",
            },
            "roundabout": {
                "default": "Enter the roundabout",
                "name": "Enter the roundabout and exit onto {way_name}",
                "exit": "Enter the roundabout and take exit {exit}",
                "exit_name": "Enter the roundabout and take exit {exit} onto {way_name}",
            },
            "rotary": {
                "default": "Enter the traffic circle",
                "name": "Enter the traffic circle and exit onto {way_name}",
                "exit": "Enter the traffic circle and take exit {exit}",
                "exit_name": "Enter the traffic circle and take exit {exit} onto {way_name}",
            },
            "exit roundabout": {"default": "Exit the roundabout", "name": "Exit the roundabout onto {way_name}"},
            "notification": {"default": "Continue {modifier}", "name": "Continue {modifier} on {way_name}"},
        },
        "messages": {
            "position.permission_denied": "Location permission denied. Enable it in your device settings.",
            "position.unavailable": "Location information is unavailable.",
            "position.timed_out": "Timed out while waiting for your location. Please try again.",
            "position.unsupported": "Geolocation is not supported or is disabled.",
            "routing.network_unreachable": "Could not reach the routing server. Check your internet connection.",
            "routing.timed_out": "The route is taking longer than expected. Check your connection and try again.",
            "routing.no_route_found": "No route could be found between the selected points.",
            "routing.server_error": "The routing server returned an error. Please try again later.",
            "routing.unknown": "The route could not be calculated. Please try again.",
            "warning.low_accuracy": (
                "Your location has low accuracy (about {accuracy} m). The calculated route may not be precise."
            ),
            "route.no_instructions": "No instructions available.",
        },
    },
    "pt-BR": {
        "modifiers": {
            "uturn": "retorno",
            "sharp right": "acentuadamente à direita",
            "right": "à direita",
            "slight right": "levemente à direita",
            "straight": "em frente",
            "slight left": "levemente à esquerda",
            "left": "à esquerda",
            "sharp left": "acentuadamente à esquerda",
        },
        "instructions": {
            "depart": {"default": "Siga em frente", "name": "Siga por {way_name}"},
            "arrive": {"default": "Você chegou ao seu destino", "name": "Você chegou a {way_name}"},
            "turn": {
                "default": "Vire {modifier}",
                "name": "Vire {modifier} em {way_name}",
                "straight": "Siga em frente",
                "straight_name": "Siga em frente por {way_name}",
                "uturn": "Faça o retorno",
                "uturn_name": "Faça o retorno em {way_name}",
            },
            "continue": {
                "default": "Continue {modifier}",
                "name": "Continue {modifier} em {way_name}",
                "straight": "Continue em frente",
                "straight_name": "Continue por {way_name}",
                "uturn": "Faça o retorno",
            },
            "new name": {"default": "Continue {modifier}", "name": "Continue por {way_name}"},
            "merge": {"default": "Entre {modifier}", "name": "Entre {modifier} em {way_name}"},
            "on ramp": {"default": "Pegue a rampa {modifier}", "name": "Pegue a rampa para {way_name}"},
            "off ramp": {"default": "Pegue a saída {modifier}", "name": "Pegue a saída para {way_name}"},
            "fork": {"default": "Mantenha-se {modifier} na bifurcação", "name": "Mantenha-se {modifier} na bifurcação para {way_name}"},
            "end of road": {
                "default": "Vire {modifier} no fim da via",
                "name": "Vire {modifier} no fim da via em {way_name}",
            },
            "roundabout": {
                "default": "Entre na rotatória",
                "name": "Entre na rotatória e saia em {way_name}",
                "exit": "Entre na rotatória e pegue a {exit}ª saída",
                "exit_name": "Entre na rotatória e pegue a {exit}ª saída para {way_name}",
            },
            "rotary": {
                "default": "Entre na rotatória",
                "name": "Entre na rotatória e saia em {way_name}",
                "exit": "Entre na rotatória e pegue a {exit}ª saída",
                "exit_name": "Entre na rotatória e pegue a {exit}ª saída para {way_name}",
            },
            "exit roundabout": {"default": "Saia da rotatória", "name": "Saia da rotatória em {way_name}"},
        },
        "messages": {
            "position.permission_denied": (
                "Não foi possível obter sua localização. O acesso à localização foi negado. "
                "Verifique as permissões do navegador."
            ),
            "position.unavailable": (
                "Não foi possível obter sua localização. As informações de localização não estão disponíveis."
            ),
            "position.timed_out": "Não foi possível obter sua localização. A solicitação de localização expirou. Tente novamente.",
            "position.unsupported": "Seu navegador não suporta geolocalização ou o recurso está desativado.",
            "routing.network_unreachable": (
                "Não foi possível conectar ao servidor de rotas. Verifique sua conexão com a internet."
            ),
            "routing.timed_out": (
                "O cálculo da rota está demorando mais que o esperado. Verifique sua conexão e tente novamente."
            ),
            "routing.no_route_found": "Não foi possível encontrar uma rota entre os pontos selecionados.",
            "routing.server_error": "Ocorreu um erro no servidor de rotas. Tente novamente mais tarde.",
            "routing.unknown": "Não foi possível calcular a rota. Verifique sua conexão e tente novamente.",
            "warning.low_accuracy": (
                "Sua localização está com baixa precisão (cerca de {accuracy}m). A rota calculada pode não ser precisa."
            ),
            "route.no_instructions": "Nenhuma instrução disponível.",
        },
    },
}


def resolve_locale(locale: str | None) -> str:
    """Return the best table tag for ``locale``: exact match, then language prefix, then English."""
    tag = (locale or "").strip().replace("_", "-")
    if not tag:
        return FALLBACK_LOCALE
    lowered = {key.lower(): key for key in _TABLES}
    if tag.lower() in lowered:
        return lowered[tag.lower()]
    language = tag.split("-", 1)[0].lower()
    for key in _TABLES:
        if key.split("-", 1)[0].lower() == language:
            return key
    return FALLBACK_LOCALE


def locale_table(locale: str | None) -> dict[str, Any]:
    return _TABLES[resolve_locale(locale)]


def fallback_table() -> dict[str, Any]:
    return _TABLES[FALLBACK_LOCALE]


def message(locale: str | None, key: str, **params: Any) -> str:
    template = locale_table(locale)["messages"].get(key) or fallback_table()["messages"].get(key)
    if template is None:
        logger.warning("Missing localized message", extra={"key": key, "locale": locale})
        return key
    try:
        return template.format(**params)
    except (KeyError, IndexError, ValueError):
        return template
