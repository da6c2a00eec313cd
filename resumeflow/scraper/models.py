"""Normalized job record shared by all providers."""
from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass
class JobRecord:
    """A job posting from any provider. redirect_url links to its application form."""

    id: str
    title: str
    company: str
    location: str
    description: str
    redirect_url: str
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    is_remote: bool = False
    country: str = ""
    category: str = ""
    source: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
