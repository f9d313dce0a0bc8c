from __future__ import annotations

"""Scene presets and builders for examples and tests."""

from typing import List, Optional

from .geometry.primitives import Primitive
from .geometry.vector import Vector3
from .models.room import Room
from .models.scene import Scene

SOURCE_NAME = "SoundSource"
LISTENER_NAME = "Listener"


def room_shell(room: Room) -> List[Primitive]:
    """Create ground, four walls and a ceiling around ``room``.

    Walls are centered on the room faces, so half of each slab lies inside.

    Example:
        >>> shell = room_shell(Room.shoebox(width=40.0, height=10.0, depth=40.0))
        >>> [p.name for p in shell][:2]
        ['Ground', 'BackWall']
    """
    t = room.wall_thickness
    lo, hi = room.min_corner, room.max_corner
    size = room.size
    mid = room.center
    return [
        Primitive.box("Ground", Vector3(mid.x, lo.y, mid.z), Vector3(size.x, t, size.z)),
        Primitive.box("BackWall", Vector3(mid.x, mid.y, lo.z), Vector3(size.x, size.y, t)),
        Primitive.box("FrontWall", Vector3(mid.x, mid.y, hi.z), Vector3(size.x, size.y, t)),
        Primitive.box("LeftWall", Vector3(lo.x, mid.y, mid.z), Vector3(t, size.y, size.z)),
        Primitive.box("RightWall", Vector3(hi.x, mid.y, mid.z), Vector3(t, size.y, size.z)),
        Primitive.box("Ceiling", Vector3(mid.x, hi.y + t / 2, mid.z), Vector3(size.x, t, size.z)),
    ]


def movable_pair(
    source_pos: Vector3,
    listener_pos: Vector3,
    *,
    source_radius: float = 0.3,
    listener_radius: float = 0.25,
) -> List[Primitive]:
    """Create the source and listener spheres.

    Both are movable and excluded from ray collisions.
    """
    return [
        Primitive.sphere(SOURCE_NAME, source_pos, source_radius, static=False, collidable=False),
        Primitive.sphere(
            LISTENER_NAME, listener_pos, listener_radius, static=False, collidable=False
        ),
    ]


def living_room_furniture(room: Room) -> List[Primitive]:
    """Furniture used by the default living-room preset."""
    w, d = room.size.x, room.size.z
    h = room.size.y
    pillar_h = h - 0.1
    box = Primitive.box
    sphere = Primitive.sphere
    return [
        box("Bookshelf-Main-Left", Vector3(-w / 2 + 5, 1.5, 0), Vector3(2, 3, 6)),
        box("Bookshelf-Main-Right", Vector3(w / 2 - 5, 1.5, 0), Vector3(2, 3, 6)),
        box("Bookshelf-Back", Vector3(0, 1.5, -d / 2 + 3), Vector3(6, 3, 1.5)),
        box("Table-Side-Left", Vector3(-w / 4, 0.7, d / 3), Vector3(2, 0.2, 1.2)),
        box("Table-Side-Right", Vector3(w / 4, 0.7, -d / 3), Vector3(2.5, 0.2, 1.5)),
        box("Bookshelf-Corner-BL", Vector3(-w / 2 + 3, 2.0, -d / 2 + 3), Vector3(1.5, 4, 1.5)),
        box("Bookshelf-Corner-FR", Vector3(w / 2 - 4, 1.0, d / 2 - 4), Vector3(1, 2, 3)),
        box("Pillar-FrontLeft", Vector3(-w / 3, pillar_h / 2, d / 3), Vector3(0.8, pillar_h, 0.8)),
        box("Pillar-FrontRight", Vector3(w / 3, pillar_h / 2, d / 3), Vector3(0.8, pillar_h, 0.8)),
        box("Pillar-BackLeft", Vector3(-w / 3, pillar_h / 2, -d / 3), Vector3(0.6, pillar_h, 0.6)),
        box("Pillar-BackRight", Vector3(w / 3, pillar_h / 2, -d / 3), Vector3(0.6, pillar_h, 0.6)),
        box("Couch-Left", Vector3(-w / 2 + 4, 0.5, d / 3), Vector3(3, 1, 1.5)),
        box("Couch-Right", Vector3(w / 2 - 4, 0.5, -d / 3), Vector3(3, 1, 1.5)),
        box("Armchair-Center", Vector3(0, 0.4, -d / 4), Vector3(1.2, 0.8, 1.2)),
        box("PlantPot1", Vector3(-w / 2 + 1.5, 0.25, d / 2 - 1.5), Vector3(0.5, 0.5, 0.5)),
        sphere("PlantLeaves1", Vector3(-w / 2 + 1.5, 1.0, d / 2 - 1.5), 0.35),
        box("PlantPot2", Vector3(w / 2 - 1.5, 0.3, -d / 2 + 1.5), Vector3(0.6, 0.6, 0.6)),
        sphere("PlantLeaves2", Vector3(w / 2 - 1.5, 1.2, -d / 2 + 1.5), 0.4),
        box("LampBase1", Vector3(w / 3, 0.75, 0), Vector3(0.3, 1.5, 0.3)),
        sphere("LampShade1", Vector3(w / 3, 1.8, 0), 0.3),
        box("MiscBox1", Vector3(5, 0.1, -10), Vector3(1, 0.2, 0.5)),
        sphere("MiscSphere1", Vector3(-8, 0.2, 8), 0.2),
    ]


def living_room_scene(
    *,
    width: float = 40.0,
    height: float = 10.0,
    depth: float = 40.0,
    wall_thickness: float = 0.2,
    source_pos: Optional[Vector3] = None,
    listener_pos: Optional[Vector3] = None,
) -> Scene:
    """Default furnished room with the source and listener facing each other.

    Example:
        >>> scene = living_room_scene()
        >>> scene.source.center
        Vector3(x=0.0, y=1.5, z=5.0)
    """
    room = Room.shoebox(width=width, height=height, depth=depth, wall_thickness=wall_thickness)
    objects = room_shell(room) + living_room_furniture(room)
    objects += movable_pair(
        source_pos if source_pos is not None else Vector3(0.0, 1.5, 5.0),
        listener_pos if listener_pos is not None else Vector3(0.0, 1.5, -5.0),
    )
    return Scene(room=room, objects=objects)


def empty_room_scene(
    *,
    width: float = 40.0,
    height: float = 20.0,
    depth: float = 40.0,
    source_pos: Vector3 = Vector3(0.0, 11.0, 0.0),
    listener_pos: Vector3 = Vector3(0.0, 1.0, 0.0),
    listener_radius: float = 1.0,
    with_shell: bool = False,
) -> Scene:
    """Room with no furniture; walls only when ``with_shell`` is set."""
    room = Room.shoebox(width=width, height=height, depth=depth)
    objects = room_shell(room) if with_shell else []
    objects += movable_pair(source_pos, listener_pos, listener_radius=listener_radius)
    return Scene(room=room, objects=objects)
