"""
Observable Events - Argument Transforms
=========================================
Computes the concrete argument list handed to one listener.

Resolution order:
    1. Listener's own append/prepend/replace, else the channel default.
    2. append/prepend win as a pair: if either is set, replace is ignored.
    3. A callable transform is called as transform(listener, args) and must
       return a sequence; a plain sequence is spliced in directly.

Recomputed on every trigger: callable transforms may read mutable
listener state such as `count`.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from observable.config.options import ArgumentTransform, EventOptions
from observable.events.listeners import ListenerRecord


def _resolve(record: ListenerRecord, transform: Optional[ArgumentTransform],
             args: List[Any]) -> List[Any]:
    if callable(transform):
        return list(transform(record, args))
    return list(transform)


def prepare_args(
    options: EventOptions,
    record: ListenerRecord,
    trigger_args: Sequence[Any],
) -> List[Any]:
    args = list(trigger_args)
    append = record.append if record.append is not None else options.append
    prepend = record.prepend if record.prepend is not None else options.prepend
    replace = record.replace if record.replace is not None else options.replace

    if append is not None or prepend is not None:
        if prepend is not None:
            args = _resolve(record, prepend, args) + args
        if append is not None:
            args = args + _resolve(record, append, args)
        return args

    if replace is not None:
        return _resolve(record, replace, args)

    return args
