"""Scene container for simulation inputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..geometry.primitives import Primitive
from .room import Room


@dataclass
class Scene:
    """Room bounds plus the primitives placed inside it.

    The source and the listener are ordinary movable primitives identified by
    name. Primitive order is preserved and used for deterministic tie-breaks.

    Examples:
        ```python
        scene = Scene(room=room, objects=[*walls, source, listener])
        scene.validate()
        ```
    """

    room: Room
    objects: List[Primitive] = field(default_factory=list)
    source_name: str = "SoundSource"
    listener_name: str = "Listener"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.room, Room):
            raise TypeError("room must be a Room instance")
        names = [obj.name for obj in self.objects]
        if len(names) != len(set(names)):
            raise ValueError("scene object names must be unique")
        for obj in (self.source, self.listener):
            if obj is not None and obj.static:
                raise ValueError(f"{obj.name} must be movable (static=False)")

    def find(self, name: str) -> Optional[Primitive]:
        for obj in self.objects:
            if obj.name == name:
                return obj
        return None

    def add(self, obj: Primitive) -> Primitive:
        if self.find(obj.name) is not None:
            raise ValueError(f"duplicate object name: {obj.name}")
        self.objects.append(obj)
        return obj

    @property
    def source(self) -> Optional[Primitive]:
        return self.find(self.source_name)

    @property
    def listener(self) -> Optional[Primitive]:
        return self.find(self.listener_name)

    def static_obstacles(self) -> List[Primitive]:
        movers = (self.source, self.listener)
        return [obj for obj in self.objects if obj.static and obj not in movers]
