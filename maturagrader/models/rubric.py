# maturagrader/models/rubric.py
"""Rubric scoring data model.

A grading result covers eight fixed criteria of the written matura essay.
Each criterion has its own point ceiling, and the total must equal the sum of
the criterion points. `validate` is the only way a scorer's answer becomes a
`RubricResult` that a session will hold.
"""
import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, computed_field, model_validator
from pydantic.alias_generators import to_camel

from maturagrader.core.exceptions import RubricValidationError

logger = logging.getLogger(__name__)


class CriterionKind(str, Enum):
    FORMAL_REQUIREMENTS = "formal_requirements"
    LITERARY_COMPETENCIES = "literary_competencies"
    STRUCTURE = "structure"
    COHERENCE = "coherence"
    STYLE = "style"
    LANGUAGE = "language"
    SPELLING = "spelling"
    PUNCTUATION = "punctuation"


MAX_POINTS: Mapping[CriterionKind, int] = MappingProxyType({
    CriterionKind.FORMAL_REQUIREMENTS: 1,
    CriterionKind.LITERARY_COMPETENCIES: 16,
    CriterionKind.STRUCTURE: 3,
    CriterionKind.COHERENCE: 3,
    CriterionKind.STYLE: 1,
    CriterionKind.LANGUAGE: 7,
    CriterionKind.SPELLING: 2,
    CriterionKind.PUNCTUATION: 2,
})

# Tally field names as the scorer payload spells them
ERROR_TALLY_ALIASES: Mapping[CriterionKind, str] = MappingProxyType({
    CriterionKind.LITERARY_COMPETENCIES: "factualErrors",
    CriterionKind.COHERENCE: "coherenceErrors",
    CriterionKind.LANGUAGE: "languageErrors",
    CriterionKind.SPELLING: "spellingErrors",
    CriterionKind.PUNCTUATION: "punctuationErrors",
})

ERROR_TALLY_KINDS = frozenset(ERROR_TALLY_ALIASES)


def compute_max_total_score() -> int:
    return sum(MAX_POINTS.values())


MAX_TOTAL_SCORE = compute_max_total_score()


class _RubricModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class DisqualificationReasons(_RubricModel):
    """Reasons for withholding the formal-requirements point."""
    cardinal_error: bool = False
    missing_reading: bool = False
    irrelevant: bool = False
    not_argumentative: bool = False

    def asserted(self) -> List[str]:
        return [name for name, value in self if value]


class GradingCriterion(_RubricModel):
    points: StrictInt = Field(ge=0)
    # Reported independently of points; the scorer may cap points regardless of the count
    error_count: Optional[StrictInt] = Field(default=None, ge=0)


class FormalRequirementsCriterion(GradingCriterion):
    reasons: DisqualificationReasons = Field(default_factory=DisqualificationReasons)


class RubricCriteria(_RubricModel):
    """Exactly the eight rubric criteria, in rubric order."""
    formal_requirements: FormalRequirementsCriterion
    literary_competencies: GradingCriterion
    structure: GradingCriterion
    coherence: GradingCriterion
    style: GradingCriterion
    language: GradingCriterion
    spelling: GradingCriterion
    punctuation: GradingCriterion

    @model_validator(mode="before")
    @classmethod
    def _normalise_error_tallies(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        for kind, tally_name in ERROR_TALLY_ALIASES.items():
            for key in (kind.value, to_camel(kind.value)):
                entry = data.get(key)
                if isinstance(entry, Mapping) and tally_name in entry:
                    entry = dict(entry)
                    tally = entry.pop(tally_name)
                    entry.setdefault("errorCount", tally)
                    data[key] = entry
        return data

    @model_validator(mode="after")
    def _check_point_bounds(self) -> "RubricCriteria":
        out_of_bounds = [
            f"{kind.value}: {criterion.points} > {MAX_POINTS[kind]}"
            for kind, criterion in self.items()
            if criterion.points > MAX_POINTS[kind]
        ]
        if out_of_bounds:
            raise ValueError("points above criterion maximum (" + "; ".join(out_of_bounds) + ")")
        return self

    def __getitem__(self, kind: Union[CriterionKind, str]) -> GradingCriterion:
        return getattr(self, CriterionKind(kind).value)

    def items(self) -> List[Tuple[CriterionKind, GradingCriterion]]:
        return [(kind, getattr(self, kind.value)) for kind in CriterionKind]

    def points_total(self) -> int:
        return sum(criterion.points for _, criterion in self.items())


class RubricResult(_RubricModel):
    criteria: RubricCriteria
    total_score: StrictInt = Field(ge=0)
    feedback: Optional[str] = Field(default=None, min_length=1)
    # First-listed item has the highest priority
    errors: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _drop_reported_maximum(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        for key in ("maxTotalScore", "max_total_score"):
            reported = data.pop(key, None)
            if reported is not None and reported != MAX_TOTAL_SCORE:
                logger.warning(
                    f"Scorer reported max total {reported}, rubric maximum is {MAX_TOTAL_SCORE}; using rubric maximum"
                )
        return data

    @model_validator(mode="after")
    def _check_total(self) -> "RubricResult":
        expected = self.criteria.points_total()
        if self.total_score != expected:
            raise ValueError(f"total_score {self.total_score} does not equal sum of criterion points {expected}")
        return self

    @computed_field(alias="maxTotalScore")
    @property
    def max_total_score(self) -> int:
        return MAX_TOTAL_SCORE

    @property
    def formal_requirements_conflict(self) -> bool:
        """Full formal-requirements point awarded while a disqualifying reason is asserted.

        Display-only; never grounds for rejecting a result.
        """
        formal = self.criteria.formal_requirements
        return formal.points == MAX_POINTS[CriterionKind.FORMAL_REQUIREMENTS] and bool(formal.reasons.asserted())


def percentage(result: RubricResult) -> int:
    """Score as a whole percentage of the rubric maximum, rounding half up."""
    total, maximum = result.total_score, result.max_total_score
    return (200 * total + maximum) // (2 * maximum)


def validate(candidate: Union[RubricResult, Mapping[str, Any]]) -> RubricResult:
    """Validate a scorer answer and return it as an immutable `RubricResult`.

    Raises `RubricValidationError` when a criterion is missing or unknown,
    points fall outside a criterion's bounds, a tally is negative, or the
    total does not match the criterion points.
    """
    if isinstance(candidate, RubricResult):
        payload: Any = candidate.model_dump(by_alias=True)
    else:
        payload = candidate

    if not isinstance(payload, Mapping):
        raise RubricValidationError(
            "Scorer response is not a JSON object",
            {"type": type(payload).__name__},
        )

    try:
        result = RubricResult.model_validate(dict(payload))
    except ValidationError as exc:
        errors: List[Dict[str, Any]] = exc.errors(include_url=False, include_context=False)
        raise RubricValidationError(
            "Scorer returned an invalid rubric result",
            {"errors": errors, "error_count": exc.error_count()},
        ) from exc

    if result.formal_requirements_conflict:
        logger.warning(
            "Formal requirements awarded full points with disqualifying reasons asserted: "
            f"{result.criteria.formal_requirements.reasons.asserted()}"
        )
    return result
