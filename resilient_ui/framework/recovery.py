"""
================================================================================
Recovery Policy
================================================================================

Bounded-attempt strategy used when an element handle went stale.

The positional tie-break of ``choose`` decides which of several re-found
candidates a handle binds to. It deliberately refuses to guess before the
final attempt: a list that mutated between discovery and use must not
silently rebind a handle to another row.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import time
from typing import Callable, Iterator, Optional, Sequence, TypeVar

from loguru import logger

T = TypeVar("T")


class RecoveryPolicy:
    """
    Attempt budget and candidate selection for stale element recovery.

    Attempts are numbered from 1 to ``max_attempts``; the last one is the
    only one allowed to accept a heuristic candidate.
    """

    def __init__(self, max_attempts: int = 5, delay: float = 0.25):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.delay = delay

    def attempts(self) -> Iterator[int]:
        return iter(range(1, self.max_attempts + 1))

    def is_final(self, attempt: int) -> bool:
        return attempt >= self.max_attempts

    def backoff(self, attempt: int) -> None:
        """Pause after a failed attempt, except after the last one."""
        if self.delay and not self.is_final(attempt):
            time.sleep(self.delay)

    def choose(
        self,
        candidates: Sequence[T],
        is_displayed: Callable[[T], bool],
        sibling_count: int,
        sibling_index: int,
        attempt: int,
    ) -> Optional[T]:
        """
        Pick the candidate a multi-match handle should rebind to.

        Rules, scanning candidates in order:
            - a displayed candidate at the recorded index, while the result
              count still equals the recorded sibling count, wins immediately;
            - the first displayed candidate elsewhere is kept as fallback;
              another displayed candidate elsewhere makes guessing unsafe;
            - a hidden candidate at the recorded index replaces the fallback.
        The fallback is only accepted on the final attempt.

        Args:
            candidates: Result of re-running the original locate-all call
            is_displayed: Visibility check for one candidate
            sibling_count: Result count recorded at discovery time
            sibling_index: Position recorded at discovery time
            attempt: Current attempt number (1-based)

        Returns:
            The chosen candidate, or None when this attempt must fail
        """
        size = len(candidates)
        if size == 0:
            logger.debug("\t-> no element found => cannot recover, hence give up")
            return None

        same_shape = size == sibling_count
        fallback: Optional[T] = None
        can_recover = True
        for idx, candidate in enumerate(candidates):
            at_index = same_shape and idx == sibling_index
            if is_displayed(candidate):
                if at_index:
                    logger.debug(f"\t-> an element is visible at the same place in the list ({idx}) => use it")
                    return candidate
                if fallback is None:
                    logger.debug(f"\t-> an element is visible at another place in the list ({idx}) => keep it")
                    fallback = candidate
                else:
                    logger.debug(f"\t-> more than one element is visible at other places ({idx}) => unsafe")
                    can_recover = False
            elif at_index:
                logger.debug(f"\t-> an element is hidden at the same place in the list ({idx}) => keep it")
                fallback = candidate

        if fallback is None:
            logger.debug("\t-> no visible element was found to recover!")
            return None
        if self.is_final(attempt):
            logger.warning(
                f"Last recovery attempt, binding to the best candidate "
                f"(recorded index {sibling_index}/{sibling_count}, found {size}, ambiguous={not can_recover})"
            )
            return fallback
        if not can_recover:
            logger.debug("\t-> several visible elements were found but not at the same index!")
        return None


__all__ = [
    "RecoveryPolicy",
]
