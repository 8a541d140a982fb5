"""MoveObjects Lambda: copy-then-delete of a path tree.

A move is not atomic. If a source delete fails after its copy, the handler
raises ``PartialMoveError``; invoking it again with ``overwrite`` enabled
completes the move.
"""

from s3tree.common.actions import run_transfer
from s3tree.common.transfer import Operation


def handler(event: dict, context) -> dict:
    return run_transfer(Operation.MOVE, event, context)
