"""Identifier generation.

Every id is a 4-character kind prefix followed by either

* a zero-padded sequence number (master tables, 16 characters by default), or
* the 32 hex digits of a random UUID (transaction tables, 36 characters).

Master sequences live in the ``id_sequences`` table and advance inside the
caller's transaction, so an id handed out by a rolled-back transaction is
handed out again, but never to a committed row.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.id_sequence import IdSequence


class IdScheme(str, Enum):
    MASTER = "master"
    TRANSACTION = "transaction"


class EntityKind(Enum):
    # Master tables
    DEPARTMENT = ("DEPT", IdScheme.MASTER)
    DOMAIN = ("DOMN", IdScheme.MASTER)
    USER = ("USER", IdScheme.MASTER)
    PROJECT = ("PROJ", IdScheme.MASTER)
    EPIC = ("EPIC", IdScheme.MASTER)
    RELEASE = ("RELS", IdScheme.MASTER)
    MILESTONE = ("MILE", IdScheme.MASTER)
    REQUIREMENT = ("REQU", IdScheme.MASTER)
    STAKEHOLDER = ("STKH", IdScheme.MASTER)
    RISK = ("RISK", IdScheme.MASTER)
    AVAILABLE_INTEGRATION = ("AVIN", IdScheme.MASTER)

    # Transaction tables
    PROJECT_TEAM_MEMBER = ("PTMB", IdScheme.TRANSACTION)
    SPRINT = ("SPNT", IdScheme.TRANSACTION)
    QUALITY_GATE = ("QLTY", IdScheme.TRANSACTION)
    STORY = ("STRY", IdScheme.TRANSACTION)
    TASK = ("TASK", IdScheme.TRANSACTION)
    SUBTASK = ("SUBT", IdScheme.TRANSACTION)
    TIME_ENTRY = ("TIME", IdScheme.TRANSACTION)
    NOTIFICATION = ("NOTF", IdScheme.TRANSACTION)
    COMMENT = ("COMM", IdScheme.TRANSACTION)
    ATTACHMENT = ("ATTC", IdScheme.TRANSACTION)
    ACTIVITY_LOG = ("ACTL", IdScheme.TRANSACTION)
    TODO = ("TODO", IdScheme.TRANSACTION)
    AI_INSIGHT = ("AINS", IdScheme.TRANSACTION)
    REPORT = ("REPT", IdScheme.TRANSACTION)
    PROJECT_INTEGRATION = ("PRIN", IdScheme.TRANSACTION)

    def __init__(self, prefix: str, scheme: IdScheme) -> None:
        self.prefix = prefix
        self.scheme = scheme

    @property
    def is_master(self) -> bool:
        return self.scheme is IdScheme.MASTER


_KINDS_BY_PREFIX = {kind.prefix: kind for kind in EntityKind}

PREFIX_LENGTH = 4
TRANSACTION_ID_LENGTH = PREFIX_LENGTH + 32


class IdGenerator(Protocol):
    async def next(self, kind: EntityKind) -> str:
        ...


class IdGenerationService:
    """Store-backed generator for every entity kind."""

    def __init__(self, db: AsyncSession, master_width: Optional[int] = None) -> None:
        self.db = db
        self.master_width = master_width or settings.master_id_width

    async def next(self, kind: EntityKind) -> str:
        if kind.is_master:
            value = await self._next_sequence_value(kind)
            return f"{kind.prefix}{value:0{self.master_width}d}"
        return f"{kind.prefix}{uuid.uuid4().hex}"

    async def _next_sequence_value(self, kind: EntityKind) -> int:
        stmt = (
            select(IdSequence)
            .where(IdSequence.kind == kind.name)
            .with_for_update()
        )
        result = await self.db.execute(stmt)
        sequence = result.scalar_one_or_none()

        if sequence is None:
            sequence = IdSequence(kind=kind.name, next_value=1)
            self.db.add(sequence)

        value = sequence.next_value
        sequence.next_value = value + 1
        await self.db.flush()
        return value

    # Convenience wrappers for the kinds the services mint most often

    async def generate_project_id(self) -> str:
        return await self.next(EntityKind.PROJECT)

    async def generate_sprint_id(self) -> str:
        return await self.next(EntityKind.SPRINT)

    async def generate_story_id(self) -> str:
        return await self.next(EntityKind.STORY)

    async def generate_task_id(self) -> str:
        return await self.next(EntityKind.TASK)

    async def generate_subtask_id(self) -> str:
        return await self.next(EntityKind.SUBTASK)

    async def generate_notification_id(self) -> str:
        return await self.next(EntityKind.NOTIFICATION)

    async def generate_activity_log_id(self) -> str:
        return await self.next(EntityKind.ACTIVITY_LOG)

    # Inspection helpers

    @staticmethod
    def extract_prefix(entity_id: Optional[str]) -> Optional[str]:
        if entity_id is None or len(entity_id) < PREFIX_LENGTH:
            return None
        return entity_id[:PREFIX_LENGTH]

    @classmethod
    def kind_for_id(cls, entity_id: Optional[str]) -> Optional[EntityKind]:
        return _KINDS_BY_PREFIX.get(cls.extract_prefix(entity_id))

    def is_master_id(self, entity_id: Optional[str]) -> bool:
        kind = self.kind_for_id(entity_id)
        return (
            kind is not None
            and kind.is_master
            and len(entity_id) == PREFIX_LENGTH + self.master_width
        )

    def is_transaction_id(self, entity_id: Optional[str]) -> bool:
        kind = self.kind_for_id(entity_id)
        return (
            kind is not None
            and not kind.is_master
            and len(entity_id) == TRANSACTION_ID_LENGTH
        )
