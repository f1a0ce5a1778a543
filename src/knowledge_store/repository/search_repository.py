"""SQLite FTS5-based search over stored items."""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from pydantic import ValidationError
from sqlalchemy import JSON, Float, String, Text, bindparam, column, text
from sqlalchemy.exc import OperationalError as SAOperationalError

from knowledge_store.config import KnowledgeStoreConfig
from knowledge_store.db import DatabaseHandle
from knowledge_store.models import UtcDateTime
from knowledge_store.repository.item_repository import check_limit
from knowledge_store.schemas import ItemResponse, SearchFilters, invalid_input
from knowledge_store.services.exceptions import QuerySyntaxError
from knowledge_store.utils import TagsInput

DateInput = Union[datetime, str, None]

# Quoted phrases (with "" escapes and an optional prefix star), parentheses,
# barewords, and a lone quote which can only be unbalanced.
TOKEN_PATTERN = re.compile(r'"(?:[^"]|"")*"\*?|[()]|[^\s()"]+|"')
SIMPLE_TERM = re.compile(r"^\w+\*?$")
BOOLEAN_OPERATORS = {"AND", "OR", "NOT"}
FTS_ERROR_MARKERS = ("fts5", "syntax error", "unterminated string", "unknown special query")


class SearchRepository:
    """Ranked full-text search over the search_index table.

    Uses SQLite's FTS5 virtual table with:
    - MATCH operator for queries
    - bm25() for relevance scoring, lower is better
    - Quoting of barewords that contain special characters
    - Tag and date filters joined against the item table
    """

    def __init__(self, handle: DatabaseHandle, config: KnowledgeStoreConfig):
        self.handle = handle
        self.config = config

    def _prepare_single_term(self, term: str) -> str:
        """Quote a bareword unless FTS5 can take it as is.

        A trailing ``*`` stays outside the quotes so prefix matching still works.

        Examples:
            hello -> hello
            pyth* -> pyth*
            state-of-the-art -> "state-of-the-art"
            c++ -> "c++"
            user@host* -> "user@host"*
        """
        if SIMPLE_TERM.match(term):
            return term

        is_prefix = len(term) > 1 and term.endswith("*")
        body = term[:-1] if is_prefix else term
        quoted = '"' + body.replace('"', '""') + '"'
        return f"{quoted}*" if is_prefix else quoted

    def prepare_query(self, query: str) -> str:
        """Turn user query text into an FTS5 MATCH expression.

        Phrases, parentheses and uppercase AND/OR/NOT pass through. Every other
        bareword goes through _prepare_single_term.

        Raises:
            QuerySyntaxError: On unbalanced quotes or parentheses
        """
        prepared: List[str] = []
        depth = 0
        for token in TOKEN_PATTERN.findall(query):
            if token == '"':
                raise QuerySyntaxError(
                    query, f"Invalid search query: unbalanced quote in {query}"
                )
            if token == "(":
                depth += 1
                prepared.append(token)
            elif token == ")":
                depth -= 1
                if depth < 0:
                    raise QuerySyntaxError(
                        query, f"Invalid search query: unbalanced parentheses in {query}"
                    )
                prepared.append(token)
            elif token.startswith('"') or token in BOOLEAN_OPERATORS:
                prepared.append(token)
            else:
                prepared.append(self._prepare_single_term(token))

        if depth != 0:
            raise QuerySyntaxError(
                query, f"Invalid search query: unbalanced parentheses in {query}"
            )
        return " ".join(prepared)

    async def search(self, query: str, limit: Optional[int] = None) -> List[ItemResponse]:
        """Full-text search over title, content and tags, most relevant first."""
        return await self.search_advanced(query, limit=limit)

    async def search_advanced(
        self,
        query: str,
        limit: Optional[int] = None,
        tags: TagsInput = None,
        date_from: DateInput = None,
        date_to: DateInput = None,
    ) -> List[ItemResponse]:
        """Ranked search restricted by tags and an inclusive ``updated_at`` range.

        An item matches the tag filter when it carries at least one of ``tags``.
        Filters are applied before the limit.
        """
        limit = check_limit(
            self.config.search_default_limit if limit is None else limit, self.config.max_limit
        )
        try:
            filters = SearchFilters(
                query=query, limit=limit, tags=tags, date_from=date_from, date_to=date_to
            )
        except ValidationError as e:
            raise invalid_input(e) from e

        return await self._execute(filters)

    async def _execute(self, filters: SearchFilters) -> List[ItemResponse]:
        match = self.prepare_query(filters.query)

        conditions = ["search_index MATCH :match"]
        params: Dict[str, Any] = {"match": match, "limit": filters.limit}

        if filters.tags:
            tag_params = []
            for index, tag in enumerate(filters.tags):
                params[f"tag_{index}"] = tag
                tag_params.append(f":tag_{index}")
            conditions.append(
                "EXISTS (SELECT 1 FROM json_each(item.tags) "
                f"WHERE json_each.value IN ({', '.join(tag_params)}))"
            )

        date_params = []
        if filters.date_from is not None:
            conditions.append("item.updated_at >= :date_from")
            date_params.append(
                bindparam("date_from", filters.date_from, type_=UtcDateTime())
            )
        if filters.date_to is not None:
            conditions.append("item.updated_at <= :date_to")
            date_params.append(bindparam("date_to", filters.date_to, type_=UtcDateTime()))

        sql = f"""
            SELECT
                item.id,
                item.title,
                item.content,
                item.tags,
                item.created_at,
                item.updated_at,
                bm25(search_index) AS score
            FROM search_index
            JOIN item ON item.rowid = search_index.rowid
            WHERE {" AND ".join(conditions)}
            ORDER BY score ASC, search_index.rowid ASC
            LIMIT :limit
        """
        statement = (
            text(sql)
            .bindparams(*date_params)
            .columns(
                column("id", String),
                column("title", String),
                column("content", Text),
                column("tags", JSON),
                column("created_at", UtcDateTime),
                column("updated_at", UtcDateTime),
                column("score", Float),
            )
        )

        logger.trace(f"Search {sql} params: {params}")
        async with self.handle.session() as session:
            try:
                result = await session.execute(statement, params)
            except SAOperationalError as e:
                message = str(e.orig).lower()
                if any(marker in message for marker in FTS_ERROR_MARKERS):
                    logger.warning(
                        f"FTS5 syntax error for search query: {filters.query}, error: {e.orig}"
                    )
                    raise QuerySyntaxError(
                        filters.query, f"Invalid search query: {filters.query} ({e.orig})"
                    ) from e
                raise
            rows = result.fetchall()

        logger.debug(f"Search for {filters.query!r} returned {len(rows)} results")
        return [
            ItemResponse(
                id=row.id,
                title=row.title,
                content=row.content,
                tags=row.tags or [],
                created_at=row.created_at,
                updated_at=row.updated_at,
                score=row.score,
            )
            for row in rows
        ]
