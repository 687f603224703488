"""
Observable Events - Return Modes
==================================
A Return Mode selects how the outcomes of N listeners are folded into
the single value handed back to the caller of a trigger.

Chained (consequent) modes feed each listener's result into the next
invocation. All other modes invoke listeners independently.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


# ══════════════════════════════════════════════════════════════
# RETURN MODE ENUM
# ══════════════════════════════════════════════════════════════

class ReturnMode(Enum):
    """Dispatch discipline, supplied per trigger call."""
    NONE = "none"                       # fire-and-forget
    RAW = "raw"                         # results exactly as returned
    ALL = "all"                         # list of all results
    CONCAT = "concat"                   # results flattened one level
    MERGE = "merge"                     # results shallow-merged into one dict
    LAST = "last"                       # result of the last listener
    PIPE = "pipe"                       # each result becomes next first arg
    FIRST = "first"                     # first invoked listener only
    UNTIL_TRUE = "untilTrue"            # stop at the first True
    UNTIL_FALSE = "untilFalse"          # stop at the first False
    FIRST_NON_EMPTY = "firstNonEmpty"   # stop at the first non-None


CHAINED_MODES = frozenset({
    ReturnMode.PIPE,
    ReturnMode.UNTIL_TRUE,
    ReturnMode.UNTIL_FALSE,
    ReturnMode.FIRST_NON_EMPTY,
})

SENTINELS = {
    ReturnMode.UNTIL_TRUE: True,
    ReturnMode.UNTIL_FALSE: False,
}


def is_chained(mode: ReturnMode) -> bool:
    return mode in CHAINED_MODES


def matches_sentinel(mode: ReturnMode, value: Any) -> bool:
    """
    True when `value` stops a chained mode.

    UNTIL_TRUE / UNTIL_FALSE compare by identity against the boolean
    singletons, so 1 and 0 never stop the chain. FIRST_NON_EMPTY stops
    at anything that is not None.
    """
    if mode in SENTINELS:
        return value is SENTINELS[mode]
    if mode == ReturnMode.FIRST_NON_EMPTY:
        return value is not None
    return False


def empty_result(mode: ReturnMode) -> Any:
    """
    Neutral value returned for a mode when nothing was dispatched
    (suspended channel, interceptor veto).
    """
    if mode in (ReturnMode.RAW, ReturnMode.ALL, ReturnMode.CONCAT):
        return []
    if mode == ReturnMode.MERGE:
        return {}
    return None
