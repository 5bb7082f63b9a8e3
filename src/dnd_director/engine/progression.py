"""Campaign round/chapter progression gated by the credit ledger.

A campaign sits at some ``(round, chapter)`` with ``round`` in
``[1, target_rounds]`` and ``chapter == ceil(round / rounds_per_chapter)``.
The only way to move is ``advance_round``, which pays for the step with
one ledger unit (a free round while any remain, then a paid credit).

The transition itself is the pure function ``plan_round_transition``; the
store runs it under its write lock so that the ledger check, the
consumption and the round increment land as one atomic update. Two
concurrent advances therefore consume two units and move two rounds.
"""

from __future__ import annotations

import asyncio

from dnd_director.core.exceptions import CreditExhaustedError
from dnd_director.core.logging import get_logger
from dnd_director.models.campaign import (
    AdvanceRoundResult,
    CampaignProgress,
    CampaignState,
    CreditLedger,
    CreditStatus,
    RoundTransition,
    calculate_chapter,
)
from dnd_director.models.enums import CreditType
from dnd_director.storage.database import CampaignStore


logger = get_logger(__name__)


# =============================================================================
# Pure Helpers
# =============================================================================


def is_chapter_boundary(round_number: int, rounds_per_chapter: int) -> bool:
    """True when ``round_number`` closes a chapter."""
    return round_number % rounds_per_chapter == 0


def next_chapter_boundary(round_number: int, rounds_per_chapter: int) -> int:
    """Last round of the chapter containing ``round_number``."""
    return calculate_chapter(round_number, rounds_per_chapter) * rounds_per_chapter


def calculate_progress(round_number: int, target_rounds: int) -> float:
    """Campaign completion as a percentage, capped at 100."""
    return min(100.0, round_number / target_rounds * 100)


def format_round_display(round_number: int, chapter: int) -> str:
    return f"Round {round_number} • Chapter {chapter}"


def format_credits_display(free_rounds_remaining: int, credits_balance: int) -> str:
    """Short ledger label for the session header."""
    if free_rounds_remaining > 0:
        return f"{free_rounds_remaining} free rounds remaining"
    if credits_balance > 0:
        return f"{credits_balance} credit{'' if credits_balance == 1 else 's'} remaining"
    return "No credits remaining"


def needs_paywall(free_rounds_remaining: int, credits_balance: int) -> bool:
    return free_rounds_remaining == 0 and credits_balance == 0


def plan_round_transition(
    progress: CampaignProgress,
    ledger: CreditLedger,
    *,
    campaign_id: str | None = None,
) -> RoundTransition:
    """Compute the next progress and ledger for one advance.

    Args:
        progress: Current position.
        ledger: Current ledger.
        campaign_id: Only used for error context.

    Returns:
        The transition to apply. At ``target_rounds`` this is a no-op with
        ``advanced=False`` and nothing is consumed.

    Raises:
        CreditExhaustedError: If no free round and no credit remain.
    """
    if progress.is_complete:
        return RoundTransition(
            previous_round=progress.current_round,
            progress=progress,
            ledger=ledger,
            advanced=False,
        )

    if not ledger.can_advance:
        raise CreditExhaustedError(
            "No free rounds or credits remaining",
            campaign_id=campaign_id,
            free_rounds_remaining=ledger.free_rounds_remaining,
            credits_balance=ledger.credits_balance,
        )

    if ledger.free_rounds_used < ledger.free_rounds_limit:
        credit_type = CreditType.FREE
        new_ledger = ledger.model_copy(update={"free_rounds_used": ledger.free_rounds_used + 1})
    else:
        credit_type = CreditType.PAID
        new_ledger = ledger.model_copy(update={"credits_balance": ledger.credits_balance - 1})

    new_round = min(progress.current_round + 1, progress.target_rounds)
    new_progress = CampaignProgress(
        current_round=new_round,
        current_chapter=calculate_chapter(new_round, progress.rounds_per_chapter),
        target_rounds=progress.target_rounds,
        rounds_per_chapter=progress.rounds_per_chapter,
    )

    return RoundTransition(
        previous_round=progress.current_round,
        progress=new_progress,
        ledger=new_ledger,
        advanced=True,
        credit_type=credit_type,
        chapter_summary_triggered=is_chapter_boundary(new_round, progress.rounds_per_chapter),
    )


def credit_status_for(state: CampaignState) -> CreditStatus:
    ledger = state.ledger
    return CreditStatus(
        campaign_id=state.campaign_id,
        free_rounds_used=ledger.free_rounds_used,
        free_rounds_remaining=ledger.free_rounds_remaining,
        credits_balance=ledger.credits_balance,
        can_advance=ledger.can_advance,
        current_round=state.progress.current_round,
        current_chapter=state.progress.current_chapter,
        target_rounds=state.progress.target_rounds,
    )


# =============================================================================
# Service
# =============================================================================


class CampaignProgression:
    """Async service over the store for advancing rounds and reading the ledger.

    Example:
        >>> progression = CampaignProgression(store)
        >>> result = await progression.advance_round("c-1")
        >>> result.round, result.chapter_summary_triggered
        (40, True)
    """

    def __init__(self, store: CampaignStore) -> None:
        self.store = store

    async def advance_round(self, campaign_id: str) -> AdvanceRoundResult:
        """Consume one ledger unit and move the campaign forward one round.

        Returns:
            AdvanceRoundResult. For a campaign already at its target this
            reports completion with ``advanced=False``.

        Raises:
            CreditExhaustedError: Paywall; nothing was mutated.
            StateConflictError: The store lock could not be taken; retryable.
            CampaignNotFoundError: Unknown campaign.
        """

        def transition(progress: CampaignProgress, ledger: CreditLedger) -> RoundTransition:
            return plan_round_transition(progress, ledger, campaign_id=campaign_id)

        try:
            outcome = await asyncio.to_thread(self.store.consume_and_advance, campaign_id, transition)
        except CreditExhaustedError:
            logger.info("Round advance blocked by paywall", campaign_id=campaign_id)
            raise

        progress = outcome.progress
        if outcome.advanced:
            logger.info(
                "Round advanced",
                campaign_id=campaign_id,
                round=progress.current_round,
                chapter=progress.current_chapter,
                credit_type=str(outcome.credit_type),
                chapter_boundary=outcome.chapter_summary_triggered,
            )
        else:
            logger.info("Campaign already complete", campaign_id=campaign_id, round=progress.current_round)

        return AdvanceRoundResult(
            campaign_id=campaign_id,
            round=progress.current_round,
            chapter=progress.current_chapter,
            is_complete=progress.is_complete,
            chapter_summary_triggered=outcome.chapter_summary_triggered,
            advanced=outcome.advanced,
            credit_type=outcome.credit_type,
            free_rounds_remaining=outcome.ledger.free_rounds_remaining,
            credits_balance=outcome.ledger.credits_balance,
        )

    async def get_status(self, campaign_id: str) -> CreditStatus:
        """Read the ledger and position. Never mutates."""
        state = await asyncio.to_thread(self.store.get_campaign, campaign_id)
        return credit_status_for(state)

    async def add_credits(self, campaign_id: str, amount: int) -> CreditStatus:
        """Credit paid rounds to a campaign (ledger side of a completed purchase)."""
        await asyncio.to_thread(self.store.add_credits, campaign_id, amount)
        return await self.get_status(campaign_id)


__all__ = [
    "is_chapter_boundary",
    "next_chapter_boundary",
    "calculate_progress",
    "format_round_display",
    "format_credits_display",
    "needs_paywall",
    "plan_round_transition",
    "credit_status_for",
    "CampaignProgression",
]
