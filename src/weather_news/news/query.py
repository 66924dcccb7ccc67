"""Build provider queries from a filter intent, categories and pagination."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

from weather_news.news.filter_policy import FilterIntent, keyword_expansion, terms_for_intent

# Canonical ordering; also the fixed key set of UserSettings.news_categories.
NEWS_CATEGORIES: tuple[str, ...] = ("general", "technology", "health", "sports", "entertainment")
DEFAULT_CATEGORY = "general"
MAX_PAGE_SIZE = 100


class ProviderQuery(BaseModel):
    """A single news provider request.

    The provider accepts exactly one category per call, so a user with
    several enabled categories only sees the first one (in
    :data:`NEWS_CATEGORIES` order).
    """

    model_config = ConfigDict(frozen=True)

    category: str
    page: int
    page_size: int
    keywords: str | None = None

    def cache_key(self) -> tuple[str, int, int, str]:
        return (self.category, self.page, self.page_size, self.keywords or "")


def select_category(enabled_categories: Iterable[str]) -> str:
    """Pick the single category a request can carry.

    An empty selection falls back to ``"general"``. Unknown names raise
    :class:`ValueError`.
    """
    enabled = {c.strip().lower() for c in enabled_categories if c and c.strip()}
    unknown = enabled.difference(NEWS_CATEGORIES)
    if unknown:
        msg = f"Unknown news categories: {', '.join(sorted(unknown))}"
        raise ValueError(msg)
    for category in NEWS_CATEGORIES:
        if category in enabled:
            return category
    return DEFAULT_CATEGORY


def build_query(
    intent: FilterIntent,
    enabled_categories: Iterable[str],
    page: int = 1,
    page_size: int = 20,
    *,
    weather_filtering: bool = True,
) -> ProviderQuery:
    """Combine a filter intent with category and pagination choices.

    Keywords are attached only when ``weather_filtering`` is on and the
    intent is active; otherwise the query is category-only.
    """
    if page < 1:
        msg = f"page must be >= 1, got {page}"
        raise ValueError(msg)
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        msg = f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}"
        raise ValueError(msg)

    keywords = None
    if weather_filtering and intent.is_active:
        keywords = keyword_expansion(terms_for_intent(intent))

    return ProviderQuery(
        category=select_category(enabled_categories),
        page=page,
        page_size=page_size,
        keywords=keywords,
    )
