from typing import List

import pytest

from roomray import (
    Primitive,
    PropagationEngine,
    Room,
    Scene,
    SimulationConfig,
    SimulationContext,
    Vector3,
    empty_room_scene,
    living_room_scene,
    movable_pair,
    room_shell,
    score_hit,
)
from roomray.models import LISTENER_COLOR


def _cage(center: Vector3, inner: float, thickness: float) -> List[Primitive]:
    """Six overlapping slabs that fully enclose ``center``."""
    outer = 2.0 * (inner + thickness)
    boxes = []
    for axis in range(3):
        for sign in (-1.0, 1.0):
            offset = [0.0, 0.0, 0.0]
            offset[axis] = sign * (inner + thickness / 2.0)
            size = [outer, outer, outer]
            size[axis] = thickness
            boxes.append(
                Primitive.box(
                    f"Cage{axis}{'+' if sign > 0 else '-'}",
                    center + Vector3(*offset),
                    Vector3(*size),
                )
            )
    return boxes


def _ceiling_bounce_scene() -> Scene:
    """Source and listener separated by a low partition under a reflecting ceiling."""
    room = Room.shoebox(width=40.0, height=20.0, depth=40.0)
    objects = [
        Primitive.box("Ceiling", Vector3(0.0, 4.1, 3.0), Vector3(40.0, 0.2, 40.0)),
        Primitive.box("Partition", Vector3(0.0, 1.2, 3.0), Vector3(4.0, 2.4, 0.2)),
    ]
    objects += movable_pair(
        Vector3(0.0, 1.0, 0.0), Vector3(0.0, 1.0, 6.0), source_radius=0.2, listener_radius=1.5
    )
    return Scene(room=room, objects=objects)


def test_empty_room_scores_only_direct_hits():
    ctx = SimulationContext(empty_room_scene(), SimulationConfig(num_rays=1000, max_bounces=3))
    result = ctx.evaluate()
    assert result.score > 0
    assert result.indirect_hits == 0
    assert result.score == result.direct_hits * 10
    # Only the three directions closest to straight down pass within the listener radius.
    assert result.direct_hits == 3
    assert result.bounce_histogram == {0: 3}

    again = ctx.evaluate()
    assert again.score == result.score


def test_listener_only_filter_controls_segments():
    scene = empty_room_scene()
    only = SimulationContext(scene, SimulationConfig(num_rays=200)).evaluate()
    assert len(only.segments) == only.direct_hits
    assert all(seg.hits_listener and seg.color == LISTENER_COLOR for seg in only.segments)
    assert all(seg.opacity == pytest.approx(0.6) for seg in only.segments)

    every = SimulationContext(scene, SimulationConfig(num_rays=200, listener_only=False)).evaluate()
    assert len(every.segments) == 200


def test_enclosed_listener_scores_zero():
    room = Room.shoebox(width=20.0, height=10.0, depth=20.0)
    listener_pos = Vector3(0.0, 5.0, 0.0)
    for source_pos in (Vector3(0.0, 5.0, 6.0), Vector3(3.0, 8.0, -4.0)):
        objects = room_shell(room) + _cage(listener_pos, inner=1.0, thickness=0.3)
        objects += movable_pair(source_pos, listener_pos, listener_radius=0.5)
        ctx = SimulationContext(
            Scene(room=room, objects=objects), SimulationConfig(num_rays=400, max_bounces=3)
        )
        result = ctx.evaluate()
        assert result.score == 0
        assert result.segments == []


def test_reflections_reach_listener_behind_partition():
    ctx = SimulationContext(_ceiling_bounce_scene(), SimulationConfig(num_rays=1000, max_bounces=3))
    result = ctx.evaluate()
    assert result.direct_hits == 0
    assert result.indirect_hits > 0
    assert result.score == sum(score_hit(b) * n for b, n in result.bounce_histogram.items())
    expected_segments = sum((b + 1) * n for b, n in result.bounce_histogram.items())
    assert len(result.segments) == expected_segments
    hitting = [seg for seg in result.segments if seg.hits_listener]
    assert len(hitting) == result.listener_hits
    assert all(seg.color == LISTENER_COLOR for seg in hitting)


def test_bounce_limit_zero_blocks_reflections():
    ctx = SimulationContext(_ceiling_bounce_scene(), SimulationConfig(num_rays=1000, max_bounces=0))
    result = ctx.evaluate()
    assert result.score == 0
    assert result.listener_hits == 0


def test_living_room_evaluation_is_deterministic():
    ctx = SimulationContext(living_room_scene(), SimulationConfig(num_rays=300))
    first = ctx.evaluate()
    second = ctx.evaluate()
    assert first.score == second.score
    assert len(first.segments) == len(second.segments)
    assert first.bounce_histogram == second.bounce_histogram


def test_estimate_uses_reduced_ray_count():
    scene = living_room_scene()
    config = SimulationConfig(num_rays=1000)
    engine = PropagationEngine(config)
    source, listener = scene.source, scene.listener
    collidables = [o for o in scene.objects if o.collidable]
    estimate = engine.estimate(
        source.center, listener.center, listener.radius, collidables, source_radius=source.radius
    )
    reduced = engine.evaluate(
        source.center,
        listener.center,
        listener.radius,
        collidables,
        num_rays=20,
        source_radius=source.radius,
        collect_segments=False,
    )
    assert estimate == reduced.score
    assert reduced.segments == []


def test_evaluate_rejects_bad_inputs():
    engine = PropagationEngine(SimulationConfig(num_rays=10))
    with pytest.raises(ValueError, match="listener_radius"):
        engine.evaluate(Vector3(), Vector3(1.0, 0.0, 0.0), 0.0, [])
    with pytest.raises(ValueError, match="num_rays"):
        engine.evaluate(Vector3(), Vector3(1.0, 0.0, 0.0), 1.0, [], num_rays=-1)
