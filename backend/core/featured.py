from core.engine import (
    MAX_TARGET,
    check_target,
    propagate,
    step_rate,
)


def _mass_where(dist, pred) -> float:
    return sum(w for s, w in dist.items() if pred(s.featured))


def exactly(pity: int, guaranteed: bool, draws: int, target: int, per_step: bool = False):
    """
    Probability (percent) of exactly `target` featured drops after `draws` draws.

    With per_step=True, returns one entry per draw instead: the probability that
    the `target`-th featured drop lands exactly on that draw.
    """
    check_target(target)

    steps = []

    def record(_draw, _dist, entered):
        steps.append(entered.get(target, 0.0) * 100)

    dist = propagate(pity, guaranteed, draws, target + 1, on_step=record if per_step else None)

    if per_step:
        return steps
    return _mass_where(dist, lambda c: c == target) * 100


def _at_least_ceiling(draws: int, target: int) -> int:
    # at most one featured drop per ten draws is worth tracking, but the target must stay reachable
    return max(target, min(draws // 10, MAX_TARGET))


def at_least(pity: int, guaranteed: bool, draws: int, target: int) -> float:
    """Probability (percent) of at least `target` featured drops after `draws` draws."""
    check_target(target)
    dist = propagate(pity, guaranteed, draws, _at_least_ceiling(draws, target))
    return _mass_where(dist, lambda c: c >= target) * 100


def at_least_curve(pity: int, guaranteed: bool, draws: int, target: int):
    """
    Curve of P(at least `target` featured drops) vs draws, in percent.
    Point x is the probability after x draws; the last point matches at_least().
    """
    check_target(target)

    curve = [{"x": 0, "y": 0.0}]

    def record(draw, dist, _entered):
        curve.append({"x": draw, "y": _mass_where(dist, lambda c: c >= target) * 100})

    propagate(pity, guaranteed, draws, _at_least_ceiling(draws, target), on_step=record)
    return curve


def level_breakdown(pity: int, guaranteed: bool, draws: int, current_level: int, target_level: int):
    """
    Per-level probabilities after `draws` draws, for every level above `current_level`
    up to `target_level`. The top level also holds every outcome beyond it.
    """
    max_count = target_level - current_level
    if max_count <= 0:
        return []

    dist = propagate(pity, guaranteed, draws, max_count)

    by_count = [0.0] * (max_count + 1)
    for s, w in dist.items():
        by_count[s.featured] += w

    return [
        {"level": current_level + c, "probability": by_count[c] * 100}
        for c in range(1, max_count + 1)
    ]


def expected_featured(pity: int, guaranteed: bool, draws: int) -> float:
    """E[#featured] over `draws` draws."""
    dist = propagate(pity, guaranteed, draws, max(draws, 1))
    return sum(s.featured * w for s, w in dist.items())


def min_guaranteed_featured(pity: int, guaranteed: bool, draws: int) -> int:
    """
    Deterministic "worst luck" minimum featured count:
    - A rare drop only happens once the rate reaches certainty (hard pity).
    - Every unguaranteed rare drop loses the 50/50.
    """
    n = pity
    g = bool(guaranteed)
    featured = 0

    for _ in range(draws):
        if step_rate(n) < 1.0:
            n += 1
            continue

        n = 0
        if g:
            featured += 1
            g = False
        else:
            g = True

    return featured


def analyze(pity: int, guaranteed: bool, draws: int, target: int) -> dict:
    curve = at_least_curve(pity, guaranteed, draws, target)

    return {
        "p_exactly": exactly(pity, guaranteed, draws, target),
        "p_at_least": curve[-1]["y"],
        "e_featured": expected_featured(pity, guaranteed, draws),
        "min_featured": min_guaranteed_featured(pity, guaranteed, draws),
        "curve": curve,
    }


def curve_only(draws: int, pity: int, guaranteed: bool, target: int):
    return at_least_curve(pity, guaranteed, draws, target)
