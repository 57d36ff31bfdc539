from __future__ import annotations

from enum import IntEnum, StrEnum


class TaskStatus(StrEnum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    # Display only: derived from next_date at read time, never persisted.
    OVERDUE = "OVERDUE"


class Frequency(StrEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUAL = "ANNUAL"
    QUINQUENNIAL = "QUINQUENNIAL"


class Priority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class Category(StrEnum):
    ELECTRICAL = "Elétrica"
    PLUMBING = "Hidráulica"
    STRUCTURAL = "Estrutural"
    FIRE_SAFETY = "Combate a Incêndio"
    ELEVATORS = "Elevadores"
    HVAC = "HVAC"
    LEISURE = "Lazer"
    CLEANING = "Limpeza"
    SECURITY = "Segurança"
    GAS = "Gás"
    GENERAL = "Geral"


DEFAULT_CATEGORIES: tuple[str, ...] = (
    Category.ELECTRICAL.value,
    Category.PLUMBING.value,
    Category.STRUCTURAL.value,
    Category.FIRE_SAFETY.value,
    Category.SECURITY.value,
    Category.GENERAL.value,
)


class NotificationKind(StrEnum):
    UPCOMING = "UPCOMING"
    OVERDUE = "OVERDUE"


class AttachmentKind(StrEnum):
    IMAGE = "image"
    DOCUMENT = "document"


class RequestState(StrEnum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    FAILED = "failed"
    SUCCEEDED = "succeeded"
