"""Score bands used when a result is entered without derived fields."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

# (minimum score, grade, remark), highest band first
GRADE_BANDS: list[tuple[float, str, str]] = [
    (75, "A", "Excellent"),
    (70, "B+", "Very Good"),
    (65, "B", "Good"),
    (60, "C+", "Credit"),
    (55, "C", "Pass"),
    (50, "D+", "Fair"),
    (45, "D", "Weak"),
    (40, "E", "Poor"),
]
FAIL_GRADE = ("F", "Fail")

GPA_BANDS: list[tuple[float, str]] = [
    (75, "4.00"),
    (70, "3.70"),
    (65, "3.30"),
    (60, "3.00"),
    (55, "2.70"),
    (50, "2.30"),
    (45, "2.00"),
    (40, "1.70"),
]

TWO_PLACES = Decimal("0.01")


def grade_for(score: float) -> tuple[str, str]:
    """Return ``(grade, remark)`` for a subject score."""
    for minimum, grade, remark in GRADE_BANDS:
        if score >= minimum:
            return grade, remark
    return FAIL_GRADE


def gpa_for(average: Decimal) -> Decimal:
    for minimum, gpa in GPA_BANDS:
        if average >= minimum:
            return Decimal(gpa)
    return Decimal("0.00")


def grade_subjects(subjects: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Fill in missing grade/remark on each subject line."""
    graded = []
    for line in subjects:
        grade, remark = grade_for(line["score"])
        graded.append({
            **line,
            "grade": line.get("grade") or grade,
            "remark": line.get("remark") or remark,
        })
    return graded


def summarize(subjects: list[dict[str, Any]]) -> dict[str, Any]:
    """Total, average (2 dp) and GPA for a list of subject lines."""
    scores = [Decimal(str(line["score"])) for line in subjects]
    total = sum(scores, Decimal("0"))
    average = (total / len(scores)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP) if scores else Decimal("0.00")
    return {
        "total_score": int(total.to_integral_value(rounding=ROUND_HALF_UP)),
        "average": average,
        "gpa": gpa_for(average),
    }
