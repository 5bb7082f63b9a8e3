"""Campaign state models.

CampaignProgress and CreditLedger carry the two invariants the progression
engine relies on; both validate on construction so a row read back from the
store that violates them fails loudly instead of propagating.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dnd_director.models.enums import (
    CreditType,
    LocationType,
    PartyHealth,
    PartyMorale,
    PartyResources,
)


def calculate_chapter(round_number: int, rounds_per_chapter: int) -> int:
    """Chapter that contains ``round_number`` (``ceil(round / rounds_per_chapter)``)."""
    return max(1, math.ceil(round_number / rounds_per_chapter))


# =============================================================================
# Progress & Ledger
# =============================================================================


class CampaignProgress(BaseModel):
    """Position of a campaign in its round/chapter progression.

    Attributes:
        current_round: Rounds played so far, capped at target_rounds.
        current_chapter: Always ``ceil(current_round / rounds_per_chapter)``.
        target_rounds: Campaign length.
        rounds_per_chapter: Chapter size.
    """

    model_config = ConfigDict(frozen=True)

    current_round: int = Field(default=1, ge=1)
    current_chapter: int = Field(default=1, ge=1)
    target_rounds: int = Field(ge=1)
    rounds_per_chapter: int = Field(ge=1)

    @model_validator(mode="after")
    def check_position(self) -> "CampaignProgress":
        if self.current_round > self.target_rounds:
            raise ValueError(
                f"current_round {self.current_round} exceeds target_rounds {self.target_rounds}"
            )
        expected = calculate_chapter(self.current_round, self.rounds_per_chapter)
        if self.current_chapter != expected:
            raise ValueError(
                f"current_chapter {self.current_chapter} does not match round "
                f"{self.current_round} (expected chapter {expected})"
            )
        return self

    @property
    def is_complete(self) -> bool:
        return self.current_round >= self.target_rounds

    @property
    def total_chapters(self) -> int:
        return calculate_chapter(self.target_rounds, self.rounds_per_chapter)


class CreditLedger(BaseModel):
    """Free-round and paid-credit balance for one campaign.

    Attributes:
        free_rounds_used: Free rounds consumed so far.
        free_rounds_limit: Free rounds granted to the campaign.
        credits_balance: Paid credits remaining.
    """

    model_config = ConfigDict(frozen=True)

    free_rounds_used: int = Field(default=0, ge=0)
    free_rounds_limit: int = Field(default=5, ge=0)
    credits_balance: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_free_rounds(self) -> "CreditLedger":
        if self.free_rounds_used > self.free_rounds_limit:
            raise ValueError(
                f"free_rounds_used {self.free_rounds_used} exceeds limit {self.free_rounds_limit}"
            )
        return self

    @property
    def free_rounds_remaining(self) -> int:
        return self.free_rounds_limit - self.free_rounds_used

    @property
    def can_advance(self) -> bool:
        """True while a free round or a paid credit is left."""
        return self.free_rounds_used < self.free_rounds_limit or self.credits_balance > 0


# =============================================================================
# World State
# =============================================================================


class Location(BaseModel):
    """Where the party currently is."""

    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    location_type: LocationType | None = None


class PartyStatus(BaseModel):
    """Coarse party condition, merged field by field on update."""

    health: PartyHealth = PartyHealth.HEALTHY
    resources: PartyResources = PartyResources.FULL
    morale: PartyMorale = PartyMorale.GOOD

    def summary(self) -> str:
        return f"health {self.health}, resources {self.resources}, morale {self.morale}"


class CampaignState(BaseModel):
    """Everything the orchestrator needs to know about a campaign for one turn.

    Attributes:
        campaign_id: Store identifier.
        name: Display name.
        progress: Round/chapter position.
        ledger: Credit ledger.
        location: Current location, if one has been set.
        party_status: Coarse party condition.
        flags: Free-form story flags set by the model.
        story_bible: Campaign premise and tone notes written by the host.
        created_at: Creation time.
    """

    campaign_id: str
    name: str
    progress: CampaignProgress
    ledger: CreditLedger
    location: Location | None = None
    party_status: PartyStatus = Field(default_factory=PartyStatus)
    flags: dict[str, Any] = Field(default_factory=dict)
    story_bible: str = ""
    created_at: datetime = Field(default_factory=datetime.now)


class CharacterInfo(BaseModel):
    """The acting participant's character, as shown to the model."""

    name: str
    character_class: str = Field(default="Adventurer", alias="class")
    level: int = Field(default=1, ge=1, le=20)
    background: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    def summary(self) -> str:
        text = f"{self.name}, level {self.level} {self.character_class}"
        if self.background:
            text += f" ({self.background})"
        return text


class HistoryEntry(BaseModel):
    """One message of the shared transcript."""

    role: Literal["player", "dm"]
    content: str
    author: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


# =============================================================================
# Service Responses
# =============================================================================


class RoundTransition(BaseModel):
    """The before/after of one consume-and-advance, applied atomically by the store.

    ``advanced`` is False for the completion no-op: nothing is written.
    """

    previous_round: int
    progress: CampaignProgress
    ledger: CreditLedger
    advanced: bool
    credit_type: CreditType | None = None
    chapter_summary_triggered: bool = False


class AdvanceRoundResult(BaseModel):
    """Outcome of a round advance.

    ``is_complete`` with ``advanced=False`` means the campaign was already at
    its target and nothing was consumed.
    """

    campaign_id: str
    round: int
    chapter: int
    is_complete: bool
    chapter_summary_triggered: bool = False
    advanced: bool = True
    credit_type: CreditType | None = None
    free_rounds_remaining: int
    credits_balance: int


class CreditStatus(BaseModel):
    """Read-only view of a campaign's ledger and position."""

    campaign_id: str
    free_rounds_used: int
    free_rounds_remaining: int
    credits_balance: int
    can_advance: bool
    current_round: int
    current_chapter: int
    target_rounds: int

    @property
    def needs_paywall(self) -> bool:
        return not self.can_advance and self.current_round < self.target_rounds


__all__ = [
    "calculate_chapter",
    "CampaignProgress",
    "CreditLedger",
    "Location",
    "PartyStatus",
    "CampaignState",
    "CharacterInfo",
    "HistoryEntry",
    "RoundTransition",
    "AdvanceRoundResult",
    "CreditStatus",
]
