"""Decide whether a lobby has messages at or after the watermark"""

from datetime import datetime
from typing import Optional, Sequence

from models import LobbyResult, Match, MessageGroup


def has_new_messages(groups: Sequence[MessageGroup], since: Optional[datetime]) -> bool:
    """True if any message was posted at or after since

    With since=None every message counts as new, so only an empty lobby is not new.
    """
    return any(
        since is None or message.timestamp >= since
        for group in groups
        for message in group.messages
    )


def classify(match: Match, groups: Sequence[MessageGroup], since: Optional[datetime]) -> LobbyResult:
    return LobbyResult(match=match, groups=tuple(groups), is_new=has_new_messages(groups, since))
