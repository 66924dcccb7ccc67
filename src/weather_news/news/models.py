"""Data models for news articles and pages."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NewsArticle(BaseModel):
    """A single headline.

    ``id`` is derived from the request time and the article's index in the
    batch, so it is only unique within one fetch.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str
    description: str = ""
    url: str
    image_url: str | None = Field(default=None, alias="urlToImage")
    source: str
    published_at: str = Field(alias="publishedAt")
    category: str | None = None


class NewsPage(BaseModel):
    """One page of provider results plus the provider-declared total."""

    model_config = ConfigDict(populate_by_name=True)

    articles: list[NewsArticle] = Field(default_factory=list)
    total_results: int = Field(alias="totalResults", ge=0)

    @model_validator(mode="after")
    def _articles_within_total(self) -> "NewsPage":
        if len(self.articles) > self.total_results:
            msg = f"page holds {len(self.articles)} articles but provider declared {self.total_results}"
            raise ValueError(msg)
        return self
