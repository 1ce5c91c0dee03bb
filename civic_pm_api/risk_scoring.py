"""
Risk score for RAID risks: probability weight times impact weight, bucketed into four levels.

PROMPT> python -m civic_pm_api.risk_scoring
"""
from enum import Enum
from typing import Dict, Iterable, List, Tuple

LEVEL_WEIGHTS: Dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}

MAX_RISK_SCORE = LEVEL_WEIGHTS["critical"] * LEVEL_WEIGHTS["critical"]


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


def level_weight(level: str) -> int:
    """Weight of a probability/impact/severity level. Raises ValueError for unknown levels."""
    key = getattr(level, "value", level)
    try:
        return LEVEL_WEIGHTS[key]
    except KeyError:
        raise ValueError(f"Unknown level {level!r}, expected one of {list(LEVEL_WEIGHTS)}") from None


def score_risk(probability: str, impact: str) -> int:
    """Calculate risk score."""
    return level_weight(probability) * level_weight(impact)


def risk_level(score: int) -> RiskLevel:
    if score <= 4:
        return RiskLevel.low
    if score <= 8:
        return RiskLevel.medium
    if score <= 12:
        return RiskLevel.high
    return RiskLevel.critical


def risk_label(score: int) -> str:
    """Human readable bucket, e.g. 12 -> 'High Risk'."""
    return f"{risk_level(score).value.title()} Risk"


def build_matrix(pairs: Iterable[Tuple[str, str]]) -> List[List[int]]:
    """
    Build a 4x4 matrix of risk counts by (probability, impact).

    Rows are impact from critical (row 0) down to low (row 3), columns are
    probability from low to critical, so the top-right cell is the worst.
    """
    size = len(LEVEL_WEIGHTS)
    matrix = [[0] * size for _ in range(size)]
    for probability, impact in pairs:
        try:
            column = level_weight(probability) - 1
            row = size - level_weight(impact)
        except ValueError:
            continue
        matrix[row][column] += 1
    return matrix


if __name__ == "__main__":
    for p in LEVEL_WEIGHTS:
        for i in LEVEL_WEIGHTS:
            s = score_risk(p, i)
            print(f"probability={p:8} impact={i:8} score={s:2} label={risk_label(s)}")
