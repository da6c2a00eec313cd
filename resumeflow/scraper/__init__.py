"""Job listing providers and aggregation."""
from .aggregator import aggregate, group_by_country
from .models import JobRecord
from .providers import AdzunaClient, JSearchClient

__all__ = ["aggregate", "group_by_country", "JobRecord", "AdzunaClient", "JSearchClient"]
