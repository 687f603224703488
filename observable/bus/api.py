"""
Observable Bus - Public API Projection
========================================
Subscription-only view of a bus, for handing to collaborators that may
listen but must not trigger, suspend, or destroy events.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class PublicApi:
    """Bound on / un / once / has of one Observable. Nothing else."""

    on: Callable[..., Any]
    un: Callable[..., Any]
    once: Callable[..., Any]
    has: Callable[..., Any]
