from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_MAX_STEPS = 100
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(slots=True)
class EngineSettings:
    max_steps: int = DEFAULT_MAX_STEPS
    strict_edges: bool = False
    step_delay_seconds: float = 0.0



def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default



def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    return default



def load_settings() -> EngineSettings:
    load_dotenv()

    max_steps = _get_int("FLOWREPLAY_MAX_STEPS", DEFAULT_MAX_STEPS)
    if max_steps < 1:
        max_steps = DEFAULT_MAX_STEPS

    return EngineSettings(
        max_steps=max_steps,
        strict_edges=_get_bool("FLOWREPLAY_STRICT_EDGES", False),
        step_delay_seconds=max(0.0, _get_float("FLOWREPLAY_STEP_DELAY_SECONDS", 0.0)),
    )
