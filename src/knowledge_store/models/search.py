"""Search DDL statements.

The search_index table is an FTS5 virtual table, which cannot be represented
as an ORM model, so it is created with raw DDL and queried with raw SQL.
"""

from sqlalchemy import DDL

# One row per item. Tags are space-joined so each tag is a searchable token.
CREATE_SEARCH_INDEX = DDL("""
CREATE VIRTUAL TABLE IF NOT EXISTS search_index USING fts5(
    id UNINDEXED,          -- Item id; the rowid matches item.rowid
    title,                 -- Item title
    content,               -- Item body
    tags,                  -- Space separated tags
    tokenize='unicode61',
    prefix='2,3'
)
""")
