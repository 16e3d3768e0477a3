from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Mapping

PREFERENCE_PREFIX = "theme."


@dataclass(frozen=True)
class ThemeConfig:
    primary_color: str = "#61dafb"
    accent_color: str = "#61dafb"
    background_color: str = "#282c34"
    text_color: str = "#ffffff"

    def reset(self) -> "ThemeConfig":
        return ThemeConfig()

    def update(self, **changes: str) -> "ThemeConfig":
        return replace(self, **changes)

    def to_preferences(self) -> dict[str, str]:
        return {PREFERENCE_PREFIX + k: v for k, v in asdict(self).items()}

    @classmethod
    def from_preferences(cls, values: Mapping[str, object]) -> "ThemeConfig":
        known = {f.name for f in fields(cls)}
        picked = {}
        for key, value in values.items():
            if not key.startswith(PREFERENCE_PREFIX):
                continue
            name = key[len(PREFERENCE_PREFIX):]
            if name in known and isinstance(value, str):
                picked[name] = value
        return cls(**picked)

    @classmethod
    def preference_keys(cls) -> list[str]:
        return [PREFERENCE_PREFIX + f.name for f in fields(cls)]
