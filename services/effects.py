"""
Side Effect Outcomes

Audit writes, shopping list regeneration and notifications run after the
main commit. They never raise; they report what happened instead.
"""

from collections import namedtuple
from enum import Enum


class SideEffectOutcome(Enum):
    APPLIED = 'applied'
    SKIPPED = 'skipped'
    FAILED = 'failed'

    @property
    def ok(self):
        return self is not SideEffectOutcome.FAILED


# subject is the created or changed row, effects maps side effect name -> outcome
OperationResult = namedtuple('OperationResult', ['subject', 'effects'])
