"""Selector directory: which nodes to look for, per application."""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_FIELD_TYPE = "textarea"


@dataclass(frozen=True)
class SelectorConfig:
    """Immutable per-application selectors.

    Selector strings are backend-specific: CSS selectors for the zendriver
    backend, node ids for the in-memory tree.
    """

    input_selectors: Tuple[str, ...] = ()
    send_selectors: Tuple[str, ...] = ()
    incoming_text_selectors: Tuple[str, ...] = ()
    fallback_field_type: str = DEFAULT_FIELD_TYPE
    incoming_text_type: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SelectorConfig":
        unknown = set(raw) - {
            "input_selectors",
            "send_selectors",
            "incoming_text_selectors",
            "fallback_field_type",
            "incoming_text_type",
        }
        if unknown:
            raise ValueError(f"unknown selector keys: {sorted(unknown)}")
        return cls(
            input_selectors=tuple(raw.get("input_selectors", ())),
            send_selectors=tuple(raw.get("send_selectors", ())),
            incoming_text_selectors=tuple(raw.get("incoming_text_selectors", ())),
            fallback_field_type=raw.get("fallback_field_type", DEFAULT_FIELD_TYPE),
            incoming_text_type=raw.get("incoming_text_type"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_selectors": list(self.input_selectors),
            "send_selectors": list(self.send_selectors),
            "incoming_text_selectors": list(self.incoming_text_selectors),
            "fallback_field_type": self.fallback_field_type,
            "incoming_text_type": self.incoming_text_type,
        }


DEFAULT_CONFIGS: Dict[str, SelectorConfig] = {
    "web.whatsapp.com": SelectorConfig(
        input_selectors=('footer div[contenteditable="true"]',),
        send_selectors=('button[aria-label="Send"]', 'span[data-icon="send"]'),
        incoming_text_selectors=("div.message-in span.selectable-text",),
    ),
    "web.telegram.org": SelectorConfig(
        input_selectors=(
            'div.input-message-input[contenteditable="true"]',
            "#editable-message-text",
        ),
        send_selectors=("button.btn-send", "button.send"),
        incoming_text_selectors=(".bubble.is-in .message",),
    ),
    "messages.google.com": SelectorConfig(
        input_selectors=("textarea.input",),
        send_selectors=("button[data-e2e-send-text-button]",),
        incoming_text_selectors=("mws-text-message-part .text-msg",),
    ),
    # Selector-less entries rely on the type fallback and the keyword search
    "tinder.com": SelectorConfig(),
    "bumble.com": SelectorConfig(),
    "hinge.co": SelectorConfig(),
}


@dataclass
class SelectorDirectory:
    """Read-only mapping from application id to `SelectorConfig`."""

    configs: Dict[str, SelectorConfig] = field(
        default_factory=lambda: dict(DEFAULT_CONFIGS)
    )

    def lookup(self, app_id: Optional[str]) -> Optional[SelectorConfig]:
        if app_id is None:
            return None
        return self.configs.get(app_id)

    def apps(self) -> List[str]:
        return sorted(self.configs)

    def __contains__(self, app_id: object) -> bool:
        return app_id in self.configs

    @classmethod
    def from_dict(
        cls, raw: Mapping[str, Mapping[str, Any]], *, include_defaults: bool = False
    ) -> "SelectorDirectory":
        configs = dict(DEFAULT_CONFIGS) if include_defaults else {}
        for app_id, entry in raw.items():
            configs[app_id] = SelectorConfig.from_dict(entry)
        return cls(configs)

    @classmethod
    def from_json(
        cls, path: Union[str, Path], *, include_defaults: bool = False
    ) -> "SelectorDirectory":
        """Load `{app_id: {input_selectors: [...], ...}}` from a JSON file."""
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a JSON object of app entries")
        directory = cls.from_dict(raw, include_defaults=include_defaults)
        logger.info("Loaded %d selector entries from %s", len(directory.configs), path)
        return directory
