"""Keyword scoring of resume text against job categories."""
import logging
from dataclasses import dataclass, field
from typing import Any

from ..core.errors import ValidationError

logger = logging.getLogger(__name__)

MAX_MISSING_SUGGESTED: int = 5


@dataclass(frozen=True)
class JobCategory:
    """Keyword taxonomy for one category of jobs."""
    keywords: list[str]
    critical_keywords: list[str]
    provider_category: str
    suggestions: list[str]
    min_score: int = 40


JOB_CATEGORIES: dict[str, JobCategory] = {
    "software": JobCategory(
        keywords=["javascript", "python", "java", "software developer", "programmer"],
        critical_keywords=["javascript", "python", "java"],
        provider_category="it-jobs",
        suggestions=[
            "Consider adding specific programming languages",
            "List your technical projects",
        ],
    ),
    "marketing": JobCategory(
        keywords=["marketing", "digital marketing", "social media"],
        critical_keywords=["marketing"],
        provider_category="marketing-jobs",
        suggestions=[
            "Highlight campaign metrics",
            "Include social media platforms managed",
        ],
    ),
    "finance": JobCategory(
        keywords=["accountant", "financial analyst", "finance"],
        critical_keywords=["accountant", "financial analyst"],
        provider_category="finance-jobs",
        suggestions=["Highlight financial metrics", "Include financial software"],
    ),
    "healthcare": JobCategory(
        keywords=["nurse", "doctor", "healthcare"],
        critical_keywords=["nurse", "doctor"],
        provider_category="healthcare-jobs",
        suggestions=["Highlight healthcare metrics", "Include healthcare software"],
    ),
    "officeAdmin": JobCategory(
        keywords=[
            "administrative assistant", "office manager", "receptionist",
            "administrator", "typing",
        ],
        critical_keywords=[
            "administrative assistant", "office manager", "administrator", "typing",
        ],
        provider_category="admin-jobs",
        suggestions=[
            "Highlight administrative metrics",
            "Include administrative software",
        ],
    ),
}


@dataclass
class ResumeAnalysis:
    """Score and keyword breakdown for one resume."""
    category: str
    score: int
    matching_keywords: list[str] = field(default_factory=list)
    missing_keywords: list[str] = field(default_factory=list)
    suggestions: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "matchingKeywords": list(self.matching_keywords),
            "missingKeywords": list(self.missing_keywords),
            "suggestions": self.suggestions,
        }


def get_category(name: str) -> JobCategory:
    """Look up a category.

    Raises:
        ValidationError: If the category is unknown.
    """
    category = JOB_CATEGORIES.get(name)
    if category is None:
        raise ValidationError(
            f"Invalid category. Available: {', '.join(JOB_CATEGORIES)}"
        )
    return category


def analyze_resume(text: str, category_name: str = "software") -> ResumeAnalysis:
    """Score resume text against a category's keywords.

    The raw score is the percentage of keywords found. Matching any
    critical keyword lifts it to at least the category minimum; matching
    none caps it at that minimum.
    """
    category = get_category(category_name)
    resume_text = text.lower()

    matching = [k for k in category.keywords if k.lower() in resume_text]
    missing = [k for k in category.keywords if k.lower() not in resume_text]

    keyword_score = len(matching) / len(category.keywords) * 100
    has_critical = any(k in matching for k in category.critical_keywords)
    if has_critical:
        final_score = max(keyword_score, category.min_score)
    else:
        final_score = min(keyword_score, category.min_score)

    lines = [f"Your resume matches {len(matching)} keywords for {category_name} positions."]
    if matching:
        lines.append(f"Matching keywords: {', '.join(matching)}")
    if missing:
        lines.append(
            "Consider adding these relevant keywords: "
            f"{', '.join(missing[:MAX_MISSING_SUGGESTED])}"
        )
    lines.extend(category.suggestions)

    # Round half up
    score = int(final_score + 0.5)
    logger.info(f"Resume scored {score} for {category_name} ({len(matching)} keywords)")
    return ResumeAnalysis(
        category=category_name,
        score=score,
        matching_keywords=matching,
        missing_keywords=missing,
        suggestions="\n".join(lines),
    )


def search_keywords(analysis: ResumeAnalysis, limit: int = 5) -> list[str]:
    """Keywords to search jobs with: matches first, category defaults otherwise."""
    if analysis.matching_keywords:
        return analysis.matching_keywords[:limit]
    return get_category(analysis.category).keywords[:limit]
