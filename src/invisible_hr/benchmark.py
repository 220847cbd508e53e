"""
Salary benchmarking.

Scores a candidate against internal peers, derives salary statistics from the
closest matches and recommends a bounded salary range with an equity check.
Everything here is pure and deterministic.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Sequence

from invisible_hr.employees import Employee
from invisible_hr.exceptions import ValidationError

logger = logging.getLogger(__name__)

TOP_MATCHES = 5
SAME_ROLE_POINTS = 60
RELATED_ROLE_POINTS = 20
SAME_COUNTRY_POINTS = 30
MAX_SALARY_BONUS = 20
SALARY_BONUS_STEP = 500
HIGH_RISK_FACTOR = 1.1


def round_half_up(value: float) -> int:
    """Round .5 upwards, unlike Python's banker's rounding."""
    return int(math.floor(value + 0.5))


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


@dataclass
class SalaryBand:
    """Optional limits for the recommended salary."""

    min: Optional[float] = None
    max: Optional[float] = None

    def __post_init__(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValidationError(
                f"Salary band minimum {self.min} is greater than maximum {self.max}", field="salary_band"
            )

    @property
    def lower(self) -> float:
        return self.min if self.min is not None else 0

    @property
    def upper(self) -> float:
        return self.max if self.max is not None else math.inf

    @property
    def is_set(self) -> bool:
        return bool(self.min) or bool(self.max)


@dataclass
class SimilarityMatch:
    employee_id: int
    name: str
    similarity: int
    salary: float
    reasons: List[str]


@dataclass
class SalaryStats:
    average: float
    median: float
    min: float
    max: float


@dataclass
class Recommendation:
    minimum: float
    target: float
    maximum: float
    reasoning: List[str] = field(default_factory=list)
    confidence: int = 0


@dataclass
class ImpactedEmployee:
    name: str
    issue: str


@dataclass
class EquityCheck:
    status: str  # PASS | WARNING
    compression_risk: str  # none | medium | high
    impacted_employees: List[ImpactedEmployee]
    message: str


@dataclass
class BenchmarkResult:
    candidate: Employee
    matches: List[SimilarityMatch]
    stats: SalaryStats
    recommendation: Recommendation
    equity: EquityCheck

    def to_dict(self) -> Dict:
        return {
            "candidate": self.candidate.model_dump(include={"id", "name", "email", "role", "salary", "country"}),
            "comparisons": {
                "matches": [asdict(match) for match in self.matches],
                "stats": asdict(self.stats),
            },
            "recommendation": asdict(self.recommendation),
            "equity": asdict(self.equity),
        }


def similarity_score(candidate: Employee, peer: Employee) -> SimilarityMatch:
    """
    Score how comparable a peer is to the candidate, from 0 to 100.

    Role match dominates, then country, then closeness of salary (one point
    lost per 500 of difference).
    """
    score = 0
    reasons = []

    if peer.role == candidate.role:
        score += SAME_ROLE_POINTS
        reasons.append("Same role")
    else:
        score += RELATED_ROLE_POINTS
        reasons.append("Related role")

    if peer.country == candidate.country:
        score += SAME_COUNTRY_POINTS
        reasons.append("Same country")

    salary_diff = abs(peer.salary - candidate.salary)
    salary_bonus = max(0, MAX_SALARY_BONUS - round_half_up(salary_diff / SALARY_BONUS_STEP))
    if salary_bonus > 0:
        score += salary_bonus
        reasons.append("Similar salary band")

    return SimilarityMatch(
        employee_id=peer.id,
        name=peer.name,
        similarity=min(100, score),
        salary=peer.salary,
        reasons=reasons,
    )


def median(values: Sequence[float]) -> float:
    """Median; the mean of the middle pair is rounded half-up for even counts."""
    if not values:
        return 0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return round_half_up((ordered[mid - 1] + ordered[mid]) / 2)
    return ordered[mid]


def salary_stats(values: Sequence[float]) -> SalaryStats:
    if not values:
        return SalaryStats(average=0, median=0, min=0, max=0)
    return SalaryStats(
        average=round_half_up(sum(values) / len(values)),
        median=median(values),
        min=min(values),
        max=max(values),
    )


def build_recommendation(target: float, band: Optional[SalaryBand] = None) -> Recommendation:
    """
    Clamp the target into the band and derive a +/-3% range around it.

    The range is widened if needed so that minimum <= target <= maximum always holds.
    """
    band = band or SalaryBand()
    lower, upper = band.lower, band.upper

    clamped = clamp(target, lower, upper)
    minimum = clamp(round_half_up(clamped * 0.97), lower, upper)
    maximum = clamp(round_half_up(clamped * 1.03), lower, upper)

    return Recommendation(minimum=min(minimum, clamped), target=clamped, maximum=max(maximum, clamped))


def check_equity(target: float, role: str, peers: Sequence[Employee]) -> EquityCheck:
    """Flag salary compression when the target tops the current maximum for the role."""
    same_role = [peer for peer in peers if peer.role == role]
    if not same_role:
        return EquityCheck(
            status="PASS",
            compression_risk="none",
            impacted_employees=[],
            message="No internal benchmarks available for this role",
        )

    role_max = max(peer.salary for peer in same_role)

    if target > role_max * HIGH_RISK_FACTOR:
        return EquityCheck(
            status="WARNING",
            compression_risk="high",
            impacted_employees=[
                ImpactedEmployee(name=peer.name, issue="Recommended salary exceeds current role maximum")
                for peer in same_role
                if peer.salary <= target
            ],
            message="Recommendation exceeds current role salary ceiling",
        )

    if target > role_max:
        return EquityCheck(
            status="WARNING",
            compression_risk="medium",
            impacted_employees=[
                ImpactedEmployee(name=peer.name, issue="Recommendation higher than current top salary")
                for peer in same_role
                if peer.salary <= target
            ],
            message="Potential salary compression for this role",
        )

    return EquityCheck(status="PASS", compression_risk="none", impacted_employees=[], message="No equity issues detected")


def confidence_for(match_count: int) -> int:
    return min(95, 70 + round_half_up(match_count / TOP_MATCHES * 20))


def analyze(candidate: Employee, peers: Sequence[Employee], salary_band: Optional[SalaryBand] = None) -> BenchmarkResult:
    """
    Benchmark a candidate against the peer pool.

    Args:
        candidate: Employee being benchmarked
        peers: Other employees; the candidate itself is ignored if present
        salary_band: Optional limits for the recommendation

    Returns:
        Top matches, statistics, recommendation and equity verdict
    """
    pool = [peer for peer in peers if peer.id != candidate.id]

    matches = sorted(
        (similarity_score(candidate, peer) for peer in pool),
        key=lambda match: match.similarity,
        reverse=True,
    )
    top_matches = matches[:TOP_MATCHES]

    salary_pool = [match.salary for match in top_matches] or [candidate.salary]
    stats = salary_stats(salary_pool)
    base_target = stats.median or candidate.salary

    recommendation = build_recommendation(base_target, salary_band)
    equity = check_equity(recommendation.target, candidate.role, pool)

    band_is_set = salary_band is not None and salary_band.is_set
    recommendation.reasoning = [
        f"Median salary of similar staff is {stats.median}" if stats.median else "Using candidate salary as baseline",
        "Recommendation adjusted to salary band limits" if band_is_set else "No salary band limits provided",
        "Equity check passed" if equity.status == "PASS" else equity.message,
    ]
    recommendation.confidence = confidence_for(len(top_matches))

    logger.info(
        f"Benchmarked {candidate.email}: {len(top_matches)} matches, target={recommendation.target}, "
        f"equity={equity.status}/{equity.compression_risk}"
    )
    return BenchmarkResult(
        candidate=candidate,
        matches=top_matches,
        stats=stats,
        recommendation=recommendation,
        equity=equity,
    )
