"""Research-publication search built on the secret cache and upstream client."""

from .cache import CacheManager
from .config import SearchConfig
from .exceptions import SearchError, SearchUnavailableError, SearchValidationError
from .faculty import FACULTY_AUTHORS, FacultyAuthor, FacultyResearchService
from .schemas import CachedSearch, FacultyMetadata, Publication, SearchMetadata, extract_year
from .service import SEARCH_TARGET, ScholarSearchService

__all__ = [
    "CacheManager",
    "CachedSearch",
    "FACULTY_AUTHORS",
    "FacultyAuthor",
    "FacultyMetadata",
    "FacultyResearchService",
    "Publication",
    "SEARCH_TARGET",
    "ScholarSearchService",
    "SearchConfig",
    "SearchError",
    "SearchMetadata",
    "SearchUnavailableError",
    "SearchValidationError",
    "extract_year",
]
