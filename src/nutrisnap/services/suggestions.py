"""Rule-based nutrition suggestions for a day's intake."""

from collections.abc import Callable
from dataclasses import dataclass

from nutrisnap.domain.advisories import Advisory, AdvisoryKind, LimitStatus
from nutrisnap.domain.goals import UserNutritionGoals
from nutrisnap.domain.stats import DailyNutritionSummary
from nutrisnap.services.goals import resolve_goals

DEFICIENCY_RATIO = 0.7
SUGAR_LIMIT_G = 50.0
SODIUM_LIMIT_MG = 2300.0


@dataclass(frozen=True)
class SuggestionRule:
    """A condition over summary and goals with the advisory it produces."""

    kind: AdvisoryKind
    title: str
    message: str
    applies: Callable[[DailyNutritionSummary, UserNutritionGoals], bool]

    def advisory(self) -> Advisory:
        return Advisory(kind=self.kind, title=self.title, message=self.message)


SUGGESTION_RULES: tuple[SuggestionRule, ...] = (
    SuggestionRule(
        kind=AdvisoryKind.INFO,
        title="Low Protein",
        message=(
            "You're low on protein today. Try: eggs, milk, paneer, chicken, "
            "fish, lentils, chickpeas."
        ),
        applies=lambda s, g: s.protein < g.protein_goal * DEFICIENCY_RATIO,
    ),
    SuggestionRule(
        kind=AdvisoryKind.INFO,
        title="Low Carbohydrates",
        message=(
            "Consider adding: rice, whole wheat bread, potatoes, oats, quinoa, "
            "sweet potatoes."
        ),
        applies=lambda s, g: s.carbohydrates < g.carbs_goal * DEFICIENCY_RATIO,
    ),
    SuggestionRule(
        kind=AdvisoryKind.INFO,
        title="Low Healthy Fats",
        message=(
            "Add more: nuts, avocado, olive oil, seeds, ghee, fatty fish like "
            "salmon."
        ),
        applies=lambda s, g: s.fats < g.fats_goal * DEFICIENCY_RATIO,
    ),
    SuggestionRule(
        kind=AdvisoryKind.WARNING,
        title="High Sugar Intake",
        message=(
            "Try to avoid: sodas, candies, pastries, sweetened beverages. "
            "Limit fruits high in sugar."
        ),
        applies=lambda s, _g: s.sugar > SUGAR_LIMIT_G,
    ),
    SuggestionRule(
        kind=AdvisoryKind.WARNING,
        title="High Sodium",
        message=(
            "Reduce: processed foods, chips, pickles, canned soups. "
            "Use less table salt."
        ),
        applies=lambda s, _g: s.sodium > SODIUM_LIMIT_MG,
    ),
    SuggestionRule(
        kind=AdvisoryKind.WARNING,
        title="Calorie Goal Exceeded",
        message=(
            "You've exceeded your calorie goal. Consider lighter meals for the "
            "rest of the day."
        ),
        applies=lambda s, g: s.calories > g.calorie_goal,
    ),
)


def evaluate(
    summary: DailyNutritionSummary, goals: UserNutritionGoals | None
) -> list[Advisory]:
    """Return the advisories whose rules fire, in rule order."""
    resolved = resolve_goals(goals)
    return [
        rule.advisory() for rule in SUGGESTION_RULES if rule.applies(summary, resolved)
    ]


def limit_status(summary: DailyNutritionSummary) -> dict[str, LimitStatus]:
    """Return sugar and sodium intake against their fixed daily limits."""
    return {
        "sugar": LimitStatus(
            consumed=summary.sugar,
            limit=SUGAR_LIMIT_G,
            exceeded=summary.sugar > SUGAR_LIMIT_G,
        ),
        "sodium": LimitStatus(
            consumed=summary.sodium,
            limit=SODIUM_LIMIT_MG,
            exceeded=summary.sodium > SODIUM_LIMIT_MG,
        ),
    }
