"""Entities that files can be attached to."""
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileAttachable(Protocol):
    """Anything with a type name and an id can own attached files."""

    @property
    def entity_type(self) -> str: ...

    @property
    def entity_id(self) -> str: ...


@dataclass(frozen=True)
class EntityRef:
    """Plain reference to an entity, used when the entity object itself is not at hand."""
    entity_type: str
    entity_id: str

    def __post_init__(self):
        object.__setattr__(self, "entity_id", str(self.entity_id))
