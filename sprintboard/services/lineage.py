"""Lineage of a story cloned out of the backlog.

A clone either continues the history of a live story that was rolled over
(``RolloverLineage``) or starts from a backlog story that never had a live
origin (``SelfOriginLineage``). Both resolve to a parent id, so every clone
carries a non-null pointer to an earlier identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

from ..models.backlog import BacklogStory
from ..models.enums import LineageSource
from ..models.story import Story


@dataclass(frozen=True)
class RolloverLineage:
    original_id: str

    @property
    def parent_id(self) -> str:
        return self.original_id

    @property
    def source(self) -> LineageSource:
        return LineageSource.ROLLOVER


@dataclass(frozen=True)
class SelfOriginLineage:
    backlog_id: str

    @property
    def parent_id(self) -> str:
        return self.backlog_id

    @property
    def source(self) -> LineageSource:
        return LineageSource.SELF_ORIGIN


Lineage = Union[RolloverLineage, SelfOriginLineage]


def resolve_lineage(backlog_story: BacklogStory) -> Lineage:
    if backlog_story.original_story_id:
        return RolloverLineage(original_id=backlog_story.original_story_id)
    return SelfOriginLineage(backlog_id=backlog_story.id)


@dataclass
class StoryLineage:
    """Every live story sharing one root identity."""

    root_id: str
    stories: List[Story]

    @property
    def rollover_count(self) -> int:
        # The root itself is not a rollover
        return sum(1 for story in self.stories if story.id != self.root_id)
