"""Map an edited Slack message back onto the standup field it produced."""

from __future__ import annotations

from typing import Optional

from .models import Standup
from .standup import StandupState

# Checked in this order; the first field whose timestamp matches wins.
FIELD_PRECEDENCE = (StandupState.PREV_DAY, StandupState.TODAY, StandupState.BLOCKER)


def match_field(standup: Standup, previous_ts: Optional[str]) -> Optional[StandupState]:
    if not previous_ts:
        return None
    for field_state in FIELD_PRECEDENCE:
        if getattr(standup, f"{field_state.value}_message_ts") == previous_ts:
            return field_state
    return None


def apply_edit(
    standup: Standup,
    previous_ts: Optional[str],
    new_text: str,
    new_ts: Optional[str],
) -> Optional[StandupState]:
    """Overwrite the field originally written by ``previous_ts``.

    The edit replaces text as-is (no skip-token normalisation) and never
    changes which fields are set, so the conversation does not move.
    """

    field_state = match_field(standup, previous_ts)
    if field_state is None:
        return None
    setattr(standup, field_state.value, new_text)
    setattr(standup, f"{field_state.value}_message_ts", new_ts or previous_ts)
    return field_state


__all__ = ["FIELD_PRECEDENCE", "apply_edit", "match_field"]
