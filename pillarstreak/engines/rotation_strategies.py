"""Rotation strategies - interchangeable pillar selection functions.

Every strategy has the signature (user_stats, history) -> pillar and is pure:
no hidden state and no mutation of its inputs. The weighted-random strategy
takes its randomness from an injected random.Random so results can be
reproduced with a seed.

Strategies:
- round-robin: nutrition → sleep → movement → nutrition, following the most
  recent history entry. Ignores stats.
- stats-based: the pillar with the lowest stat (missing stat = 0), ties
  broken by enumeration order. Falls back to round-robin without stats.
- weighted-random: random draw weighted by max(1, 100 - stat + 1). Falls back
  to round-robin without stats.

Names resolve through RotationStrategyRegistry. Unknown names (wrong case,
stray whitespace, non-strings) resolve to round-robin and never raise.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import partial
import random
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.math_utils import coerce_stat_value
from .completion_engine import CompletionEngine

if TYPE_CHECKING:
    from ..type_defs import PillarHistory, PillarStatsMap, StrategyFn


# Shared default source for weighted-random when no RNG is injected
_DEFAULT_RNG = random.Random()


def _has_stats(user_stats: Any) -> bool:
    """Return True when user_stats is a non-empty mapping."""
    if not user_stats:
        return False
    if not isinstance(user_stats, Mapping):
        const.LOGGER.warning(
            "Ignoring user stats of unexpected type %s", type(user_stats).__name__
        )
        return False
    return True


def _stat_values(user_stats: PillarStatsMap) -> dict[str, float]:
    """Return a finite stat per pillar; missing or unusable values become 0."""
    return {
        pillar: coerce_stat_value(user_stats.get(pillar)) for pillar in const.PILLARS
    }


def round_robin_strategy(
    user_stats: PillarStatsMap | None,  # pylint: disable=unused-argument
    history: PillarHistory | None,
) -> str:
    """Return the pillar after the most recent history entry's pillar.

    Examples:
        round_robin_strategy({}, []) → "nutrition"
        round_robin_strategy({}, [{"pillar": "nutrition"}]) → "sleep"
        round_robin_strategy({}, [{"pillar": "movement"}]) → "nutrition"
    """
    sequence = const.PILLARS
    if not history:
        return sequence[0]

    try:
        last_entry = history[-1]
    except (TypeError, KeyError, IndexError):
        return sequence[0]

    if not isinstance(last_entry, Mapping):
        return sequence[0]

    last_pillar = last_entry.get(const.DATA_HISTORY_PILLAR)
    if not CompletionEngine.is_valid_pillar(last_pillar):
        return sequence[0]

    next_index = (sequence.index(last_pillar) + 1) % len(sequence)
    return sequence[next_index]


def stats_based_strategy(
    user_stats: PillarStatsMap | None,
    history: PillarHistory | None,
) -> str:
    """Return the pillar with the lowest stat.

    Examples:
        stats_based_strategy({"nutrition": 80, "sleep": 30, "movement": 70}, []) → "sleep"
        stats_based_strategy({"sleep": 50}, []) → "nutrition"
    """
    if not _has_stats(user_stats):
        return round_robin_strategy(user_stats, history)

    values = _stat_values(user_stats)
    # min() keeps the first minimal item, so ties go to enumeration order
    return min(const.PILLARS, key=values.__getitem__)


def weighted_random_strategy(
    user_stats: PillarStatsMap | None,
    history: PillarHistory | None,
    rng: random.Random | None = None,
) -> str:
    """Draw a pillar with probability proportional to its weight.

    weight = max(1, 100 - stat + 1), so lower stats are more likely and a
    missing stat (0) weighs 101. One uniform draw is scaled by the total.
    """
    if not _has_stats(user_stats):
        return round_robin_strategy(user_stats, history)

    values = _stat_values(user_stats)
    weights = [
        max(const.WEIGHT_MIN, const.STAT_MAX - values[pillar] + 1)
        for pillar in const.PILLARS
    ]
    total_weight = sum(weights)

    draw = (rng or _DEFAULT_RNG).random() * total_weight
    for pillar, weight in zip(const.PILLARS, weights, strict=True):
        draw -= weight
        if draw <= 0:
            return pillar

    # Floating point leftovers only
    return const.PILLARS[-1]


class RotationStrategyRegistry:
    """Named lookup of rotation strategies.

    Injected into RotationEngine.rotate(); a registry built with a seeded
    random.Random makes weighted-random deterministic.

    Example:
        registry = RotationStrategyRegistry(rng=random.Random(42))
        strategy = registry.get("weighted-random")
        pillar = strategy({"sleep": 10}, [])
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        """Initialize the registry with the three built-in strategies."""
        self._strategies: dict[str, StrategyFn] = {
            const.STRATEGY_ROUND_ROBIN: round_robin_strategy,
            const.STRATEGY_STATS_BASED: stats_based_strategy,
            const.STRATEGY_WEIGHTED_RANDOM: partial(
                weighted_random_strategy, rng=rng or _DEFAULT_RNG
            ),
        }

    @property
    def names(self) -> tuple[str, ...]:
        """Registered strategy names."""
        return tuple(self._strategies)

    def get(self, name: Any) -> StrategyFn:
        """Return the strategy registered under `name` (exact match).

        Anything else resolves to round-robin.
        """
        if isinstance(name, str) and name in self._strategies:
            return self._strategies[name]
        if name is not None:
            const.LOGGER.debug(
                "Unknown rotation strategy %r, using %s",
                name,
                const.STRATEGY_ROUND_ROBIN,
            )
        return self._strategies[const.STRATEGY_ROUND_ROBIN]


DEFAULT_REGISTRY = RotationStrategyRegistry()


def get_rotation_strategy(name: Any) -> StrategyFn:
    """Resolve a strategy name through the default registry."""
    return DEFAULT_REGISTRY.get(name)
