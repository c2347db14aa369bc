"""
LLM Response Handler - turn a raw completion payload into a site bundle
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from errors import InvalidModelOutput, MissingMarkup
from logging_config import logger

MARKUP_FILE = "index.html"
STYLESHEET_FILE = "styles.css"
SCRIPT_FILE = "script.js"


@dataclass(frozen=True)
class Bundle:
    """The three generated site files"""
    markup: str
    stylesheet: str = ""
    script: str = ""

    def to_files(self) -> Dict[str, str]:
        return {
            MARKUP_FILE: self.markup,
            STYLESHEET_FILE: self.stylesheet,
            SCRIPT_FILE: self.script,
        }


def _first(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def _field(value: Any, name: str) -> Any:
    if isinstance(value, dict):
        return value.get(name)
    return None


# Known payload shapes, probed in order
TEXT_PROBES: List[Tuple[str, Callable[[Any], Any]]] = [
    ("choices.text", lambda p: _field(_first(_field(p, "choices")), "text")),
    ("choices.message.content", lambda p: _field(_field(_first(_field(p, "choices")), "message"), "content")),
    ("output.content", lambda p: _field(_first(_field(p, "output")), "content")),
    ("text", lambda p: _field(p, "text")),
]

# Accepted key aliases per bundle slot, first non-empty wins
SLOT_ALIASES: Dict[str, Tuple[str, ...]] = {
    "markup": ("index.html", "index", "html"),
    "stylesheet": ("styles.css", "style.css", "css"),
    "script": ("script.js", "app.js", "js"),
}

FENCE_OPEN = re.compile(r"^```[\w+-]*(?:\s+|$)")
FENCE_CLOSE = re.compile(r"```$")


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


class LLMResponseHandler:
    """
    Normalize completion payloads into a Bundle
    """

    @staticmethod
    def extract_text(payload: Any) -> str:
        """
        Pull the completion text out of an upstream payload

        Args:
            payload: Decoded upstream response (any shape)

        Returns:
            Completion text, or the serialized payload when no known
            shape matches
        """
        if isinstance(payload, str):
            return payload

        for name, probe in TEXT_PROBES:
            value = probe(payload)
            if value:
                logger.debug("Completion text located", shape=name)
                return _as_text(value)

        logger.warning("No known completion shape matched, using whole payload")
        return _as_text(payload)

    @staticmethod
    def strip_fences(text: str) -> str:
        """Remove surrounding markdown code fences, keeping the interior"""
        text = text.strip()
        while True:
            stripped = FENCE_OPEN.sub("", text, count=1)
            stripped = FENCE_CLOSE.sub("", stripped, count=1).strip()
            if stripped == text:
                return text
            text = stripped

    @staticmethod
    def parse_object(text: str) -> Dict[str, Any]:
        """
        Parse the cleaned text as a JSON object.

        Falls back to the span between the first '{' and the last '}'.

        Raises:
            InvalidModelOutput: neither attempt yields an object
        """
        parsed = _load_object(text)
        if parsed is not None:
            return parsed

        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            parsed = _load_object(text[start:end + 1])
            if parsed is not None:
                logger.info("Recovered JSON object from surrounding text")
                return parsed

        error = InvalidModelOutput(text)
        logger.error("JSON parse failed", model_text_preview=error.preview)
        raise error

    @staticmethod
    def resolve_slot(data: Dict[str, Any], aliases: Tuple[str, ...]) -> str:
        for key in aliases:
            value = data.get(key)
            if value:
                return _as_text(value)
        return ""

    @staticmethod
    def to_bundle(data: Dict[str, Any]) -> Bundle:
        """
        Map a parsed object onto the bundle slots

        Raises:
            MissingMarkup: no markup alias holds a value
        """
        slots = {
            slot: LLMResponseHandler.resolve_slot(data, aliases)
            for slot, aliases in SLOT_ALIASES.items()
        }

        if not slots["markup"]:
            logger.error("Generated bundle missing index.html", keys=list(data.keys()))
            raise MissingMarkup(list(data.keys()))

        return Bundle(**slots)

    @staticmethod
    def normalize(payload: Any) -> Bundle:
        """
        Main entry point: payload -> text -> object -> Bundle
        """
        text = LLMResponseHandler.extract_text(payload)
        text = LLMResponseHandler.strip_fences(text)
        data = LLMResponseHandler.parse_object(text)
        return LLMResponseHandler.to_bundle(data)
