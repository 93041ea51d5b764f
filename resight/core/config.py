"""
Locator configuration.

Every threshold used by the scanner, fingerprinting, scoring and scroll
search lives here so tests and callers can tune them without touching the
algorithms.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional
import os

ENV_PREFIX = "RESIGHT_"


@dataclass(frozen=True)
class LocatorConfig:
    """Configuration for scanning, matching and scroll search."""
    # Fingerprint
    context_max_items: int = 10
    context_max_distance: float = 100.0
    # Similarity
    pair_distance_tolerance: float = 3.0
    area_tolerance: float = 2.0
    similarity_threshold: float = 0.5
    # Search ordering
    column_width: float = 100.0
    # Scroll search
    scroll_step: float = 20.0
    scroll_max_attempts: int = 1000
    min_scroll_progress: float = 1.0
    stall_limit: int = 2
    # Snapshot watching
    poll_interval: float = 0.5
    change_poll_interval: float = 0.1
    wait_timeout: float = 10.0
    history_size: int = 8

    def with_overrides(self, **overrides: Any) -> "LocatorConfig":
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LocatorConfig":
        """
        Build a config from ``RESIGHT_<FIELD>`` environment variables.

        Example:
            RESIGHT_SCROLL_STEP=40 RESIGHT_SIMILARITY_THRESHOLD=0.6

        Raises:
            ValueError: if a variable cannot be converted to the field type
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            raw = environ.get(key)
            if raw is None or raw == "":
                continue
            field_type = int if f.type in (int, "int") else float
            try:
                overrides[f.name] = field_type(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from None
        return cls(**overrides)
