import pytest

from roomray import BASE_DIRECT_HIT_SCORE, fibonacci_table, reduced_ray_count, score_hit
from roomray.models import BOUNCE_COLORS, LISTENER_COLOR, bounce_color, ray_legend


def test_fibonacci_table_recurrence():
    fib = fibonacci_table(20)
    assert len(fib) == 21
    assert fib[0] == 0
    assert fib[1] == 1
    for i in range(2, 21):
        assert fib[i] == fib[i - 1] + fib[i - 2]
    assert all(a <= b for a, b in zip(fib, fib[1:]))
    assert fib[20] == 6765


def test_fibonacci_table_clamps_at_limit():
    assert fibonacci_table(10, limit=20) == (0, 1, 1, 2, 3, 5, 8, 13, 13, 13, 13)
    with pytest.raises(ValueError):
        fibonacci_table(-1)


def test_score_hit_weights():
    assert score_hit(0) == BASE_DIRECT_HIT_SCORE == 10
    assert score_hit(1) == 1
    assert score_hit(3) == 2
    assert score_hit(7) == 13
    assert score_hit(25) == 6765
    with pytest.raises(ValueError):
        score_hit(-1)


@pytest.mark.parametrize(
    "num_rays,expected",
    [(0, 10), (100, 10), (1000, 20), (2500, 50), (100000, 100)],
)
def test_reduced_ray_count_is_clamped(num_rays, expected):
    assert reduced_ray_count(num_rays) == expected


def test_bounce_colors_wrap_and_legend():
    assert bounce_color(0) == BOUNCE_COLORS[0]
    assert bounce_color(len(BOUNCE_COLORS)) == BOUNCE_COLORS[0]
    legend = ray_legend(3)
    assert legend[0] == {"color": LISTENER_COLOR, "label": "Reaches Listener"}
    labels = [entry["label"] for entry in legend]
    assert labels[1:] == ["Direct Path (Non-Listener)", "1st Bounce", "2nd Bounce", "3rd Bounce"]
    assert ray_legend(30)[-1]["label"] == "Further Bounces"
