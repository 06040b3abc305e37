"""Domain layer - pure value objects with no infrastructure dependencies.

This layer contains:
- Value Objects: query context, scored items, results and score breakdowns
- The intent enumeration driving per-mode scoring
- The documentation page type indexed by the bundled documentation engine
"""

from search_pipeline.domain.model import DocPage
from search_pipeline.domain.search import (
    DEFAULT_MAX_RESULTS,
    ScoreBreakdown,
    ScoreBreakdownBuilder,
    ScoredItem,
    SearchContext,
    SearchMode,
    SearchResult,
)


__all__ = [
    "DEFAULT_MAX_RESULTS",
    "DocPage",
    "ScoreBreakdown",
    "ScoreBreakdownBuilder",
    "ScoredItem",
    "SearchContext",
    "SearchMode",
    "SearchResult",
]
