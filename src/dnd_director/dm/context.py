"""Bounded context assembly for a model turn.

Only a small, fixed window of history goes to the model. That is a cost
control, not a completeness guarantee: older turns reach the model only
through memory lookups and chapter summaries.
"""

from __future__ import annotations

from typing import Any, Sequence

from dnd_director.core.constants import DM_HISTORY_PREVIEW_CHARS
from dnd_director.models.campaign import CampaignState, CharacterInfo, HistoryEntry
from dnd_director.models.memory import StoryBeat

EMPTY_CONTEXT = "This is the beginning of a new adventure!"


def _preview(text: str, limit: int = DM_HISTORY_PREVIEW_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def build_context(
    state: CampaignState | None,
    history: Sequence[HistoryEntry] = (),
    character: CharacterInfo | None = None,
    *,
    story_beats: Sequence[StoryBeat] = (),
    context_window: int = 4,
) -> str:
    """Render the campaign context block sent as a system message.

    Args:
        state: Campaign state, if the campaign exists yet.
        history: Transcript, oldest first; only the last ``context_window``
            entries are used, and DM messages are cut to a short preview.
        character: The acting participant's character.
        story_beats: Planned beats for upcoming rounds.
        context_window: How many history entries to include.

    Returns:
        The context text, or a fixed opener when there is nothing to say.
    """
    sections: list[str] = []

    if character is not None:
        lines = [
            "CHARACTER INFORMATION:",
            f"Name: {character.name}",
            f"Class: {character.character_class}",
            f"Level: {character.level}",
        ]
        if character.background:
            lines.append(f"Background: {character.background}")
        sections.append("\n".join(lines))

    if state is not None:
        progress = state.progress
        if state.location is not None:
            location = state.location.name
            if state.location.location_type:
                location += f" ({state.location.location_type})"
            if state.location.description:
                location += f" - {state.location.description}"
            sections.append(f"CURRENT LOCATION: {location}")

        sections.append(
            f"CURRENT ROUND: {progress.current_round} / {progress.target_rounds}\n"
            f"CURRENT CHAPTER: {progress.current_chapter} / {progress.total_chapters}"
        )
        if state.story_bible:
            sections.append(f"STORY BIBLE: {state.story_bible}")
        sections.append(f"PARTY STATUS: {state.party_status.summary()}")
        if state.flags:
            flags = ", ".join(f"{key}={value}" for key, value in sorted(state.flags.items()))
            sections.append(f"STORY FLAGS: {flags}")

    if story_beats:
        lines = ["PLANNED STORY BEATS:"]
        lines.extend(
            f"- Round {beat.round_number} ({beat.priority}, {beat.beat_type}): {beat.description}"
            for beat in story_beats
        )
        sections.append("\n".join(lines))

    recent = list(history)[-context_window:] if context_window > 0 else []
    if recent:
        lines = ["RECENT CONVERSATION:"]
        for entry in recent:
            if entry.role == "player":
                lines.append(f"Player: {entry.content}")
            else:
                lines.append(f"DM: {_preview(entry.content)}")
        sections.append("\n".join(lines))

    return "\n\n".join(sections) if sections else EMPTY_CONTEXT


def build_message_history(history: Sequence[HistoryEntry], *, window: int = 6) -> list[dict[str, Any]]:
    """Last ``window`` transcript entries as chat messages."""
    if window <= 0:
        return []
    return [
        {"role": "user" if entry.role == "player" else "assistant", "content": entry.content}
        for entry in list(history)[-window:]
    ]


__all__ = ["EMPTY_CONTEXT", "build_context", "build_message_history"]
