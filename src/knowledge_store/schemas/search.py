"""Search request schema.

Queries use FTS5 syntax:
- "python flask" matches items with both terms
- "python OR django" matches either term
- "python NOT django" excludes django
- "(python OR flask) AND web" groups with parentheses
- "\"exact phrase\"" matches a phrase
- "pyth*" matches a prefix
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from knowledge_store.schemas.base import FilterDate, TagList


class SearchFilters(BaseModel):
    """Ranked search arguments.

    An empty ``tags`` list is the same as no tag filter. The date range
    applies to ``updated_at`` and is inclusive at both ends.
    """

    query: str
    limit: int = Field(default=10, ge=1)
    tags: Optional[TagList] = None
    date_from: FilterDate = None
    date_to: FilterDate = None

    @model_validator(mode="after")
    def check_query_and_range(self) -> "SearchFilters":
        if not self.query.strip():
            raise ValueError("query must not be empty")
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self
