"""Tests for round/chapter progression and the credit ledger."""

from __future__ import annotations

import pytest

from dnd_director.core.exceptions import CampaignNotFoundError, CreditExhaustedError
from dnd_director.engine.progression import (
    CampaignProgression,
    calculate_progress,
    format_credits_display,
    format_round_display,
    is_chapter_boundary,
    needs_paywall,
    next_chapter_boundary,
    plan_round_transition,
)
from dnd_director.models.campaign import CampaignProgress, CreditLedger, calculate_chapter
from dnd_director.models.enums import CreditType


def _progress(round_number: int, *, target: int = 200, per_chapter: int = 40) -> CampaignProgress:
    return CampaignProgress(
        current_round=round_number,
        current_chapter=calculate_chapter(round_number, per_chapter),
        target_rounds=target,
        rounds_per_chapter=per_chapter,
    )


class TestPureHelpers:
    """Tests for chapter arithmetic and display helpers."""

    @pytest.mark.parametrize(
        ("round_number", "chapter"),
        [(1, 1), (39, 1), (40, 1), (41, 2), (200, 5)],
    )
    def test_calculate_chapter(self, round_number: int, chapter: int) -> None:
        """Test chapter is ceil(round / rounds_per_chapter)."""
        assert calculate_chapter(round_number, 40) == chapter

    def test_chapter_boundary(self) -> None:
        """Test boundaries fall on multiples of the chapter size."""
        assert is_chapter_boundary(40, 40) is True
        assert is_chapter_boundary(41, 40) is False
        assert next_chapter_boundary(41, 40) == 80

    def test_progress_percent(self) -> None:
        """Test completion percentage is capped."""
        assert calculate_progress(50, 200) == 25.0
        assert calculate_progress(250, 200) == 100.0

    def test_displays(self) -> None:
        """Test round and credit labels."""
        assert format_round_display(41, 2) == "Round 41 • Chapter 2"
        assert format_credits_display(3, 0) == "3 free rounds remaining"
        assert format_credits_display(0, 1) == "1 credit remaining"
        assert format_credits_display(0, 0) == "No credits remaining"
        assert needs_paywall(0, 0) is True
        assert needs_paywall(0, 2) is False


class TestModelInvariants:
    """Tests for progress and ledger validation."""

    def test_chapter_must_match_round(self) -> None:
        """Test a mismatched chapter is rejected."""
        with pytest.raises(ValueError):
            CampaignProgress(current_round=41, current_chapter=1, target_rounds=200, rounds_per_chapter=40)

    def test_round_cannot_exceed_target(self) -> None:
        """Test the round is capped by the target."""
        with pytest.raises(ValueError):
            CampaignProgress(current_round=201, current_chapter=6, target_rounds=200, rounds_per_chapter=40)

    def test_free_rounds_cannot_exceed_limit(self) -> None:
        """Test the ledger rejects overuse."""
        with pytest.raises(ValueError):
            CreditLedger(free_rounds_used=6, free_rounds_limit=5)


class TestPlanRoundTransition:
    """Tests for the pure transition function."""

    def test_free_round_consumed_first(self) -> None:
        """Test a free round pays while any remain, even with credits."""
        ledger = CreditLedger(free_rounds_used=4, free_rounds_limit=5, credits_balance=3)

        outcome = plan_round_transition(_progress(5), ledger)

        assert outcome.advanced is True
        assert outcome.credit_type == CreditType.FREE
        assert outcome.ledger.free_rounds_used == 5
        assert outcome.ledger.credits_balance == 3
        assert outcome.progress.current_round == 6

    def test_paid_credit_after_free_rounds(self) -> None:
        """Test credits pay once free rounds run out."""
        ledger = CreditLedger(free_rounds_used=5, free_rounds_limit=5, credits_balance=2)

        outcome = plan_round_transition(_progress(6), ledger)

        assert outcome.credit_type == CreditType.PAID
        assert outcome.ledger.credits_balance == 1

    def test_chapter_boundary_triggers_summary(self) -> None:
        """Test round 39 to 40 with 40-round chapters triggers a summary."""
        ledger = CreditLedger(free_rounds_used=0, free_rounds_limit=5)

        outcome = plan_round_transition(_progress(39), ledger)

        assert outcome.progress.current_round == 40
        assert outcome.progress.current_chapter == 1
        assert outcome.chapter_summary_triggered is True

    def test_next_round_opens_new_chapter(self) -> None:
        """Test round 40 to 41 moves to chapter 2 without a summary."""
        outcome = plan_round_transition(_progress(40), CreditLedger(free_rounds_limit=5))

        assert outcome.progress.current_chapter == 2
        assert outcome.chapter_summary_triggered is False

    def test_paywall(self) -> None:
        """Test an exhausted ledger raises and carries its balance."""
        ledger = CreditLedger(free_rounds_used=5, free_rounds_limit=5, credits_balance=0)

        with pytest.raises(CreditExhaustedError) as exc_info:
            plan_round_transition(_progress(6), ledger, campaign_id="c-1")

        assert exc_info.value.details["campaign_id"] == "c-1"
        assert exc_info.value.details["free_rounds_remaining"] == 0

    def test_complete_campaign_is_noop(self) -> None:
        """Test advancing at the target consumes nothing."""
        ledger = CreditLedger(free_rounds_used=5, free_rounds_limit=5, credits_balance=0)

        outcome = plan_round_transition(_progress(200), ledger)

        assert outcome.advanced is False
        assert outcome.ledger == ledger
        assert outcome.progress.current_round == 200


class TestCampaignProgression:
    """Tests for the store-backed progression service."""

    @pytest.mark.asyncio
    async def test_advance_round(self, store, campaign) -> None:
        """Test one advance moves one round and uses one free round."""
        progression = CampaignProgression(store)

        result = await progression.advance_round(campaign.campaign_id)

        assert result.round == 2
        assert result.chapter == 1
        assert result.credit_type == CreditType.FREE
        assert result.free_rounds_remaining == 4
        assert result.is_complete is False

    @pytest.mark.asyncio
    async def test_ledger_invariant(self, store, campaign) -> None:
        """Test rounds advanced equals free rounds used plus credits spent."""
        progression = CampaignProgression(store)
        await progression.add_credits(campaign.campaign_id, 2)

        for _ in range(7):
            await progression.advance_round(campaign.campaign_id)

        status = await progression.get_status(campaign.campaign_id)
        assert status.current_round == 8
        assert status.free_rounds_used == 5
        assert status.credits_balance == 0
        assert status.can_advance is False
        assert len(store.usage_history(campaign.campaign_id)) == 7

    @pytest.mark.asyncio
    async def test_paywall_leaves_state_untouched(self, store, campaign) -> None:
        """Test a blocked advance mutates nothing."""
        progression = CampaignProgression(store)
        for _ in range(5):
            await progression.advance_round(campaign.campaign_id)

        with pytest.raises(CreditExhaustedError):
            await progression.advance_round(campaign.campaign_id)

        state = store.get_campaign(campaign.campaign_id)
        assert state.progress.current_round == 6
        assert state.ledger.free_rounds_used == 5

    @pytest.mark.asyncio
    async def test_completed_campaign(self, store) -> None:
        """Test an advance at the target reports completion without spending."""
        small = store.create_campaign("One-shot", target_rounds=2, rounds_per_chapter=2, free_rounds_limit=5)
        progression = CampaignProgression(store)

        first = await progression.advance_round(small.campaign_id)
        second = await progression.advance_round(small.campaign_id)

        assert first.round == 2
        assert first.is_complete is True
        assert first.chapter_summary_triggered is True
        assert second.advanced is False
        assert second.free_rounds_remaining == 4

    @pytest.mark.asyncio
    async def test_unknown_campaign(self, store) -> None:
        """Test an unknown campaign raises."""
        with pytest.raises(CampaignNotFoundError):
            await CampaignProgression(store).advance_round("missing")
