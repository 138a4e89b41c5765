"""
triplace.config — YAML Configuration Loader
============================================

**Why this file exists:**
This module reads ``config.yaml`` for non-secret settings: the app identity,
the API port and the tunables of the community matching rules.  Secrets
(``DATABASE_URL``, ``JWT_SECRET``) stay in the environment / ``.env``.

Usage::

    from triplace.config import load_config

    cfg = load_config()                  # reads ./config.yaml by default
    print(cfg.app_name)                  # "TriPlace"
    print(cfg.max_active_communities)    # 5
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from triplace import constants


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TriPlaceConfig:
    """Immutable configuration loaded from ``config.yaml``.

    Every matching tunable has a default equal to the production rule, so a
    minimal YAML file only needs the identity keys.
    """

    # Identity
    app_name: str = "TriPlace"

    # API
    api_port: int = 8000

    # Community rotation
    max_active_communities: int = constants.MAX_ACTIVE_COMMUNITIES

    # Recommendations
    recommendation_threshold: float = constants.RECOMMENDATION_THRESHOLD
    recommendation_limit: int = constants.RECOMMENDATION_LIMIT

    # Dynamic membership
    member_radius_miles: float = constants.MEMBER_RADIUS_MILES
    expanded_radius_miles: float = constants.EXPANDED_RADIUS_MILES
    member_overlap_threshold: float = constants.MEMBER_OVERLAP_THRESHOLD
    member_limit: int = constants.MEMBER_LIMIT

    # Feed
    activity_feed_limit: int = constants.ACTIVITY_FEED_LIMIT

    # Startup
    seed_sample_data: bool = False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> TriPlaceConfig:
    """Read *path* and return a :class:`TriPlaceConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If the required ``app_name`` key is missing.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    matching: dict = raw.get("matching") or {}
    defaults = TriPlaceConfig()

    return TriPlaceConfig(
        app_name=raw["app_name"],
        api_port=int(raw.get("api_port", defaults.api_port)),
        max_active_communities=int(
            matching.get("max_active_communities", defaults.max_active_communities)
        ),
        recommendation_threshold=float(
            matching.get("recommendation_threshold", defaults.recommendation_threshold)
        ),
        recommendation_limit=int(
            matching.get("recommendation_limit", defaults.recommendation_limit)
        ),
        member_radius_miles=float(
            matching.get("member_radius_miles", defaults.member_radius_miles)
        ),
        expanded_radius_miles=float(
            matching.get("expanded_radius_miles", defaults.expanded_radius_miles)
        ),
        member_overlap_threshold=float(
            matching.get("member_overlap_threshold", defaults.member_overlap_threshold)
        ),
        member_limit=int(matching.get("member_limit", defaults.member_limit)),
        activity_feed_limit=int(
            raw.get("activity_feed_limit", defaults.activity_feed_limit)
        ),
        seed_sample_data=bool(raw.get("seed_sample_data", defaults.seed_sample_data)),
    )
