"""Runtime toggles, read at the start of every run."""

from __future__ import annotations
import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional, Union

logger = logging.getLogger(__name__)

MODE_SKIP = "skip"
MODE_CLEAR = "clear"  # default
MODE_APPEND = "append"
INPUT_MODES = (MODE_SKIP, MODE_CLEAR, MODE_APPEND)

DEFAULT_COOLDOWN_MS = 10000

# On-screen keyboards emit a storm of events that never carry a target field
DEFAULT_IGNORED_APPS: FrozenSet[str] = frozenset(
    {
        "com.google.android.inputmethod.latin",
        "com.microsoft.inputmethod.latin",
        "com.touchtype.swiftkey",
        "com.samsung.android.honeyboard",
        "com.baidu.input",
        "jp.co.omronsoft.openwnn",
    }
)


@dataclass
class Settings:
    service_active: bool = False
    input_mode: str = MODE_CLEAR
    cooldown_ms: int = DEFAULT_COOLDOWN_MS
    require_focus: bool = False
    debug_overlay: bool = False
    scan_delay_ms: int = 120
    app_enabled: Dict[str, bool] = field(default_factory=dict)
    ignored_apps: FrozenSet[str] = DEFAULT_IGNORED_APPS

    def __setattr__(self, name: str, value: Any) -> None:
        # checked on every assignment, runtime changes included
        if name == "input_mode" and value not in INPUT_MODES:
            raise ValueError(f"input_mode must be one of {INPUT_MODES}, got {value!r}")
        if name == "cooldown_ms" and value < 0:
            raise ValueError("cooldown_ms must be >= 0")
        super().__setattr__(name, value)

    def __post_init__(self) -> None:
        self.ignored_apps = frozenset(self.ignored_apps)

    def is_app_enabled(self, app_id: Optional[str]) -> bool:
        """Apps are enabled unless explicitly switched off."""
        if app_id is None:
            return False
        return self.app_enabled.get(app_id, True)

    def set_app_enabled(self, app_id: str, enabled: bool) -> None:
        self.app_enabled[app_id] = enabled

    def is_ignored(self, app_id: Optional[str]) -> bool:
        return app_id is not None and app_id in self.ignored_apps

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Settings":
        known = set(cls.__dataclass_fields__)
        unknown = set(raw) - known
        if unknown:
            logger.warning("Ignoring unknown settings keys: %s", sorted(unknown))
        return cls(**{k: v for k, v in raw.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["ignored_apps"] = sorted(self.ignored_apps)
        return data

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Settings":
        p = Path(path)
        if not p.exists():
            logger.info("No settings at %s; using defaults", p)
            return cls()
        return cls.from_dict(json.loads(p.read_text(encoding="utf-8")))

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
