from dataclasses import dataclass, field
from fractions import Fraction
from typing import Dict, Iterable, List, Optional, Protocol

from scorecard.schemas.form import CategoryDefinition, FormDefinition


class RatedItem(Protocol):
    behavior_item_id: str
    rating: int


@dataclass(frozen=True)
class ScoreResult:
    """Per-category means and the weight-normalised overall score.

    ``overall_score`` is ``None`` when no category received a rating, so
    "no data" is never confused with the lowest possible score.
    """

    cluster_scores: Dict[str, float] = field(default_factory=dict)
    overall_score: Optional[float] = None


class ScoringEngine:
    """Turn item ratings into category (cluster) and overall scores.

    Pure and deterministic: no I/O, no clock, no shared state.

    Algorithm:
        1. Group ratings by the category that owns each behavior item.
           Categories with no rated item are excluded entirely; they
           contribute neither a score nor weight.
        2. ``cluster = mean(ratings)`` on the raw 1–4 scale.
        3. ``overall = Σ(cluster × weight) / Σ(weight)`` over the scored
           categories, so weights need not sum to 1.

    Arithmetic is carried out on ``Fraction`` values and converted to
    ``float`` once at the end; a single scored category therefore yields
    an overall score exactly equal to its cluster score.

    Ratings are expected to be validated (1–4) by the caller; they are
    never clamped here.
    """

    def score(self, form: FormDefinition, item_scores: Iterable[RatedItem]) -> ScoreResult:
        ratings_by_item: Dict[str, List[int]] = {}
        for item in item_scores:
            ratings_by_item.setdefault(item.behavior_item_id, []).append(item.rating)

        cluster_fractions: Dict[str, Fraction] = {}
        weighted_sum = Fraction(0)
        weight_total = Fraction(0)

        for category in form.categories:
            ratings = self._ratings_for(category, ratings_by_item)
            if not ratings:
                continue
            cluster = Fraction(sum(ratings), len(ratings))
            weight = Fraction(category.weight)
            cluster_fractions[category.id] = cluster
            weighted_sum += cluster * weight
            weight_total += weight

        if not cluster_fractions:
            return ScoreResult(cluster_scores={}, overall_score=None)

        return ScoreResult(
            cluster_scores={cid: float(value) for cid, value in cluster_fractions.items()},
            overall_score=float(weighted_sum / weight_total),
        )

    @staticmethod
    def _ratings_for(
        category: CategoryDefinition, ratings_by_item: Dict[str, List[int]]
    ) -> List[int]:
        ratings: List[int] = []
        for item in category.items:
            ratings.extend(ratings_by_item.get(item.id, ()))
        return ratings

    @staticmethod
    def category_for_item(form: FormDefinition, item_id: str) -> Optional[CategoryDefinition]:
        """Return the category owning *item_id* in *form*, or ``None``."""
        for category in form.categories:
            if any(item.id == item_id for item in category.items):
                return category
        return None

    @staticmethod
    def unknown_items(form: FormDefinition, item_ids: Iterable[str]) -> List[str]:
        """Return the ids in *item_ids* that belong to no category of *form*."""
        known = {item.id for category in form.categories for item in category.items}
        return [item_id for item_id in item_ids if item_id not in known]
