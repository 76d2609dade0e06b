"""Module result codes and exit status mapping."""

from __future__ import annotations

from collections.abc import Sequence
from enum import IntEnum


class ModuleResult(IntEnum):
    """Result of one module call, in the order the pipeline numbers them"""

    REJECT = 0  #: immediately reject the request
    FAIL = 1  #: module failed, don't reply
    OK = 2  #: the module is OK, continue
    HANDLED = 3  #: the module handled the request, so stop
    INVALID = 4  #: the module considers the request invalid
    USERLOCK = 5  #: reject the request (user is locked out)
    NOTFOUND = 6  #: user not found
    NOOP = 7  #: module succeeded without doing anything
    UPDATED = 8  #: OK (pairs modified)


RESULT_CODES: tuple[ModuleResult, ...] = tuple(ModuleResult)


def map_exit_status(
    status: int, codes: Sequence[ModuleResult] = RESULT_CODES
) -> ModuleResult:
    """Translate a program status into a module result.

    0 is success. A positive exit code N selects ``codes[N - 1]``, so a
    program can answer with any result (exit 1 rejects, exit 3 is OK, ...);
    codes beyond the table, and negative statuses, are failures.
    """
    if status == 0:
        return ModuleResult.OK
    if status < 0 or status > len(codes):
        return ModuleResult.FAIL
    return codes[status - 1]


__all__ = ["ModuleResult", "RESULT_CODES", "map_exit_status"]
