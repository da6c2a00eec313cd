"""Tests for resume scoring and PDF text extraction."""
from io import BytesIO

import pytest
from pypdf import PdfWriter

from resumeflow.core.errors import ValidationError
from resumeflow.scoring.analyzer import (
    JOB_CATEGORIES,
    analyze_resume,
    get_category,
    search_keywords,
)
from resumeflow.scoring.pdf import extract_text


class TestAnalyzeResume:
    def test_ratio_score(self) -> None:
        result = analyze_resume("Python, Java and JavaScript programmer", "software")
        assert result.score == 80
        assert result.missing_keywords == ["software developer"]

    def test_critical_keyword_lifts_to_minimum(self) -> None:
        result = analyze_resume("Certified accountant", "finance")
        assert result.matching_keywords == ["accountant"]
        assert result.score == 40

    def test_no_critical_keyword_caps_at_minimum(self) -> None:
        result = analyze_resume("Ran social media for a digital marketing agency", "marketing")
        # "marketing" is a substring of "digital marketing", so all three match
        assert result.score == 100

        capped = analyze_resume("Experienced with social media", "marketing")
        assert capped.matching_keywords == ["social media"]
        assert capped.score == 33

    def test_nothing_matches(self) -> None:
        result = analyze_resume("Chef and baker", "healthcare")
        assert result.score == 0
        assert result.matching_keywords == []
        assert "Consider adding these relevant keywords" in result.suggestions

    def test_matching_is_case_insensitive(self) -> None:
        result = analyze_resume("REGISTERED NURSE", "healthcare")
        assert result.matching_keywords == ["nurse"]

    def test_suggestions_include_category_tips(self) -> None:
        result = analyze_resume("python", "software")
        lines = result.suggestions.split("\n")
        assert lines[0] == "Your resume matches 1 keywords for software positions."
        assert lines[-1] == "List your technical projects"

    def test_to_dict_keys(self) -> None:
        data = analyze_resume("python", "software").to_dict()
        assert set(data) == {"score", "matchingKeywords", "missingKeywords", "suggestions"}

    def test_unknown_category(self) -> None:
        with pytest.raises(ValidationError, match="Invalid category"):
            analyze_resume("python", "astronaut")


class TestCategories:
    def test_get_category(self) -> None:
        assert get_category("officeAdmin") is JOB_CATEGORIES["officeAdmin"]

    def test_search_keywords_prefers_matches(self) -> None:
        analysis = analyze_resume("python and java", "software")
        assert search_keywords(analysis) == ["python", "java"]

    def test_search_keywords_falls_back_to_category(self) -> None:
        analysis = analyze_resume("nothing relevant", "finance")
        assert search_keywords(analysis, limit=2) == ["accountant", "financial analyst"]


class TestExtractText:
    def test_blank_pdf_yields_empty_text(self) -> None:
        writer = PdfWriter()
        writer.add_blank_page(width=200, height=200)
        buffer = BytesIO()
        writer.write(buffer)

        assert extract_text(buffer.getvalue()) == ""

    def test_garbage_rejected(self) -> None:
        with pytest.raises(ValidationError):
            extract_text(b"this is not a pdf")
