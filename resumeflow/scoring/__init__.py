"""Resume scoring: PDF text extraction and keyword analysis."""
from .analyzer import (
    JOB_CATEGORIES,
    JobCategory,
    ResumeAnalysis,
    analyze_resume,
    get_category,
    search_keywords,
)
from .pdf import extract_text

__all__ = [
    "JOB_CATEGORIES",
    "JobCategory",
    "ResumeAnalysis",
    "analyze_resume",
    "get_category",
    "search_keywords",
    "extract_text",
]
