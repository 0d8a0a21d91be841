"""
Guide SQL (raw).

Entries are stored with a normalized `search_term` and a space-joined
`search_vector` of tokens used for fuzzy lookups (ILIKE + pg_trgm similarity).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core import db

from .schemas import ORDER_COLUMNS

ENTRY_COLUMNS = """
    e.id, e.search_term, e.content, e.travel_advice, e.where_to_find,
    e.what_to_avoid, e.fun_fact, e.advertisement, e.reliability, e.danger_level,
    e.contributor_id, e.category_id, e.search_vector, e.popularity,
    e.created_at, e.updated_at
"""

CATEGORY_COLUMNS = """
    c.name AS category_name,
    c.slug AS category_slug
"""

SIMILARITY_THRESHOLD = 0.1


def _with_category(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    name = row.pop("category_name", None)
    slug = row.pop("category_slug", None)
    row["category"] = {"id": row["category_id"], "name": name, "slug": slug} if row.get("category_id") else None
    return row


async def find_similar(term: str, *, limit: int = 5) -> list[dict[str, Any]]:
    """
    Entries whose term or token vector contains `term`, ranked by popularity.
    """
    rows = await db.fetch_all(
        f"""
        SELECT {ENTRY_COLUMNS}, {CATEGORY_COLUMNS}
        FROM guide_entries e
        LEFT JOIN guide_categories c ON c.id = e.category_id
        WHERE (
            strpos(lower(e.search_term), lower($1)) > 0
            OR strpos(lower(e.search_vector), lower($1)) > 0
          )
          AND similarity(e.search_term, $1) > $2
        ORDER BY e.popularity DESC, e.id DESC
        LIMIT $3
        """,
        term,
        SIMILARITY_THRESHOLD,
        limit,
    )
    return [_with_category(row) for row in rows]


async def find_entry(normalized_term: str) -> dict[str, Any] | None:
    """
    Exact normalized match first, then the most popular substring match.
    """
    row = await db.fetch_one(
        f"""
        SELECT {ENTRY_COLUMNS}, {CATEGORY_COLUMNS}
        FROM guide_entries e
        LEFT JOIN guide_categories c ON c.id = e.category_id
        WHERE e.search_term = $1
           OR strpos(lower(e.search_term), $1) > 0
        ORDER BY (e.search_term = $1) DESC, e.popularity DESC, e.id ASC
        LIMIT 1
        """,
        normalized_term,
    )
    return _with_category(row)


async def list_cross_references(entry_id: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT t.id, t.search_term, t.popularity
        FROM guide_cross_references x
        JOIN guide_entries t ON t.id = x.target_entry_id
        WHERE x.source_entry_id = $1
        ORDER BY t.popularity DESC, t.id ASC
        """,
        entry_id,
    )


async def increment_popularity(entry_id: int) -> int:
    value = await db.fetch_val(
        """
        UPDATE guide_entries
        SET popularity = popularity + 1,
            updated_at = now()
        WHERE id = $1
        RETURNING popularity
        """,
        entry_id,
    )
    return int(value or 0)


async def create_entry(
    *,
    search_term: str,
    content: str,
    travel_advice: str,
    where_to_find: str,
    what_to_avoid: str,
    fun_fact: str,
    advertisement: str,
    reliability: int,
    danger_level: int,
    contributor_id: str,
    search_vector: str,
    popularity: int = 1,
) -> dict[str, Any]:
    row = await db.fetch_one(
        """
        INSERT INTO guide_entries (
          search_term, content, travel_advice, where_to_find, what_to_avoid,
          fun_fact, advertisement, reliability, danger_level, contributor_id,
          search_vector, popularity
        )
        VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
        RETURNING *
        """,
        search_term,
        content,
        travel_advice,
        where_to_find,
        what_to_avoid,
        fun_fact,
        advertisement,
        reliability,
        danger_level,
        contributor_id,
        search_vector,
        popularity,
    )
    if row is None:
        raise RuntimeError("Failed to create guide entry.")
    row["category"] = None
    return row


async def list_recent(limit: int = 10) -> list[dict[str, Any]]:
    rows = await db.fetch_all(
        f"""
        SELECT {ENTRY_COLUMNS}, {CATEGORY_COLUMNS}
        FROM guide_entries e
        LEFT JOIN guide_categories c ON c.id = e.category_id
        ORDER BY e.created_at DESC, e.id DESC
        LIMIT $1
        """,
        limit,
    )
    return [_with_category(row) for row in rows]


async def list_popular(limit: int = 10) -> list[dict[str, Any]]:
    rows = await db.fetch_all(
        f"""
        SELECT {ENTRY_COLUMNS}, {CATEGORY_COLUMNS}
        FROM guide_entries e
        LEFT JOIN guide_categories c ON c.id = e.category_id
        ORDER BY e.popularity DESC, e.id DESC
        LIMIT $1
        """,
        limit,
    )
    return [_with_category(row) for row in rows]


def _submission_filters(
    *,
    search: str | None,
    start_date: datetime | None,
    end_date: datetime | None,
) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    args: list[Any] = []
    if search:
        args.append(search)
        clauses.append(f"strpos(lower(e.search_term), lower(${len(args)})) > 0")
    if start_date is not None:
        args.append(start_date)
        clauses.append(f"e.created_at >= ${len(args)}")
    if end_date is not None:
        args.append(end_date)
        clauses.append(f"e.created_at <= ${len(args)}")

    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, args


async def list_submissions(
    *,
    limit: int,
    offset: int,
    search: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    order_by: str = "createdAt",
    order_dir: str = "desc",
) -> tuple[list[dict[str, Any]], int]:
    """
    One page of entries plus the total count for the same filters.
    """
    where, args = _submission_filters(search=search, start_date=start_date, end_date=end_date)
    column = ORDER_COLUMNS[order_by]
    direction = "ASC" if order_dir == "asc" else "DESC"

    total = await db.fetch_val(f"SELECT count(*) FROM guide_entries e {where}", *args)
    rows = await db.fetch_all(
        f"""
        SELECT {ENTRY_COLUMNS}
        FROM guide_entries e
        {where}
        ORDER BY e.{column} {direction}, e.id {direction}
        LIMIT ${len(args) + 1} OFFSET ${len(args) + 2}
        """,
        *args,
        limit,
        offset,
    )
    return rows, int(total or 0)
