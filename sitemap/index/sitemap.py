"""
The sitemap session: one open handle on the index database.

A session batches every write into a single ``BEGIN IMMEDIATE`` transaction
that is committed by :meth:`Sitemap.close` (or rolled back when a ``with``
block exits on an exception).  Typical bulk refresh of a category::

    with Sitemap(db_path) as sitemap:
        sitemap.reset("pages")
        for page in pages:
            sitemap.upsert("pages", page)
        sitemap.delete()  # whatever was not upserted again
"""

import hashlib
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

from ..database.hierarchy import CategoryTree, normalize_category
from ..database.manager import DatabaseManager
from ..database.statements import Statement, StatementCache
from ..models.config import AppConfig
from ..models.document import (
    PAGE_FIELDS,
    Document,
    SearchResult,
    UpsertResult,
    decode_info,
    encode_info,
)
from ..search.fts import CLOSE_MARK, OPEN_MARK, FullTextIndex
from ..utils import resolve_timestamp, strip_tags

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS = (1, 1, 1, 1, 1)

Categories = Union[str, Iterable[str], None]


def normalize_weights(weights: Optional[Sequence[float]]) -> List[float]:
    """Right-pad with 1 and truncate to the five search fields."""
    weights = list(weights or [])[: len(DEFAULT_WEIGHTS)]
    return weights + [1] * (len(DEFAULT_WEIGHTS) - len(weights))


def content_hash(page: Mapping[str, Any]) -> str:
    """md5 over category, path, title, description, keywords, image, content."""
    joined = "".join(str(page.get(name) or "") for name in PAGE_FIELDS)
    return hashlib.md5(joined.encode("utf-8")).hexdigest()


def page_url(path: str, base: str = "", suffix: str = "") -> str:
    """Absolute display URL of a stored path; the site root gets no suffix."""
    return base + (path + suffix if path else "")


def _like_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Sitemap:
    def __init__(self, db_path: str = "sitemap.db", snippet_tokens: int = 24):
        self.db = DatabaseManager(db_path)
        self.statements = StatementCache(self.db)
        self.categories = CategoryTree(self.db, self.statements)
        self.fts = FullTextIndex(self.db, self.statements, snippet_tokens)
        self.closed = False

    @classmethod
    def open(cls, config: AppConfig) -> "Sitemap":
        return cls(config.db_path, snippet_tokens=config.snippet_tokens)

    def __enter__(self) -> "Sitemap":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close(commit=exc_type is None)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def close(self, commit: bool = True):
        """Wrap up the session: close statements, refresh bounds, commit, disconnect."""
        if self.closed:
            return
        self.closed = True
        try:
            self.statements.close()
            if commit:
                if self.categories.inserted:
                    self.categories.refresh()
                if self.db.transaction:
                    self.db.commit()
                    logger.info(f"Committed sitemap session on {self.db.db_path}")
            elif self.db.transaction:
                self.db.rollback()
                logger.info(f"Rolled back sitemap session on {self.db.db_path}")
        finally:
            self.db.close()

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def reset(self, category: str) -> int:
        """Flag every page under ``category`` as deleted, pending :meth:`delete`."""
        ids = self.db.ids(
            "SELECT id FROM categories WHERE category LIKE ?",
            (normalize_category(category) + "%",),
        )
        if not ids:
            return 0
        self.db.begin()
        placeholders = ", ".join("?" for _ in ids)
        cursor = self.db.execute(
            f"UPDATE sitemap SET deleted = 1 WHERE category_id IN ({placeholders})", ids
        )
        logger.info(f"Reset {cursor.rowcount} pages under '{category}'")
        return cursor.rowcount

    def upsert(self, category: str, save: Mapping[str, Any]) -> UpsertResult:
        """
        Insert or update one page.

        ``save`` holds ``path``, ``title``, ``description``, ``keywords``,
        ``image``, ``content`` and optionally ``updated`` (epoch seconds).
        Anything else is kept in the extra field bag and merged into search
        results.  The markup-stripped ``content`` is what gets indexed.

        Only the fixed fields are hashed: a live page whose extra fields alone
        changed is left as it is and reported ``UNCHANGED``.
        """
        save = dict(save)
        updated = resolve_timestamp(save.pop("updated", None))
        save["category"] = normalize_category(category)
        page = {}
        for name in PAGE_FIELDS:
            value = save.pop(name, None)
            page[name] = "" if value is None else str(value)
        info = encode_info(save)
        page_hash = content_hash(page)
        search_fields = (
            page["path"],
            page["title"],
            page["description"],
            page["keywords"],
            strip_tags(page["content"]),
        )

        row = self.statements.execute(Statement.SELECT_DOCUMENT, (page["path"],))
        if row is None:
            doc_id = self.fts.insert(search_fields)
            self.statements.execute(
                Statement.INSERT_DOCUMENT,
                (
                    doc_id,
                    self.categories.resolve(page["category"]),
                    page["path"],
                    info,
                    page["image"],
                    page["content"],
                    page_hash,
                    updated,
                    0,
                ),
            )
            logger.debug(f"Inserted '{page['path']}' as {doc_id}")
            return UpsertResult.INSERTED

        if row["hash"] == page_hash and not row["deleted"]:
            if info != (row["info"] or ""):
                logger.debug(f"Ignored extra field changes of unchanged '{page['path']}'")
            return UpsertResult.UNCHANGED

        result = UpsertResult.UPDATED
        if row["hash"] == page_hash:
            # Revived from a reset: keep the former recency
            updated = row["updated"]
            result = UpsertResult.REVIVED
        self.fts.update(row["docid"], search_fields)
        self.statements.execute(
            Statement.UPDATE_DOCUMENT,
            (
                self.categories.resolve(page["category"]),
                page["path"],
                info,
                page["image"],
                page["content"],
                page_hash,
                updated,
                0,
                row["docid"],
            ),
        )
        logger.debug(f"{result.value.capitalize()} '{page['path']}' ({row['docid']})")
        return result

    def delete(self, path: Optional[str] = None) -> int:
        """
        Hard delete ``path``, or (without one) every page still flagged by
        :meth:`reset`.  Returns the number of pages removed.
        """
        if path is not None:
            row = self.statements.execute(Statement.SELECT_DOCUMENT, (path,))
            if row is None:
                return 0
            doc_ids = [row["docid"]]
        else:
            doc_ids = self.db.ids("SELECT docid FROM sitemap WHERE deleted = ?", (1,))
        for doc_id in doc_ids:
            self.fts.delete(doc_id)
            self.statements.execute(Statement.DELETE_DOCUMENT, (doc_id,))
        if doc_ids:
            logger.info(f"Deleted {len(doc_ids)} pages" + (f" ('{path}')" if path else ""))
        return len(doc_ids)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    @staticmethod
    def _where(category: Categories, where: str = "") -> Tuple[str, List[Any]]:
        clauses = []
        params: List[Any] = []
        if category:
            likes = [category] if isinstance(category, str) else list(category)
            likes = [normalize_category(like) for like in likes]
            clauses.append("(" + " OR ".join("c.category LIKE ?" for _ in likes) + ")")
            params += [like + "%" for like in likes]
        if where and where.strip():
            clauses.append("(" + where.strip() + ")")
        if not clauses:
            return "", params
        return "WHERE " + " AND ".join(clauses), params

    def count(
        self,
        phrase: str,
        category: Categories = "",
        where: str = "",
        weights: Optional[Sequence[float]] = None,
    ) -> int:
        """
        Total search results for ``phrase``.

        ``where`` is appended with AND; prefix search fields with ``s.``, page
        fields with ``m.`` and the category name with ``c.``.  Pass the same
        ``weights`` as to :meth:`search` so zero-weighted fields are skipped
        here too.
        """
        sql, params = self._where(category, where)
        return self.fts.count(phrase, sql, params, normalize_weights(weights))

    def search(
        self,
        phrase: str,
        category: Categories = "",
        limit: Any = None,
        weights: Optional[Sequence[float]] = None,
        where: str = "",
        base_url: str = "",
        suffix: str = "",
    ) -> List[SearchResult]:
        """
        Search results for ``phrase``, most relevant first.

        ``weights`` are the importance of path, title, description, keywords
        and content, ``[1, 1, 1, 1, 1]`` by default.  Only fields with a
        non-zero weight are matched against.
        """
        sql, params = self._where(category, where)
        rows = self.fts.search(phrase, limit, sql, params, normalize_weights(weights))
        fixed = set(SearchResult.fixed_fields())
        results = []
        for row in rows:
            extra = {
                key: value
                for key, value in decode_info(row["info"]).items()
                if key not in fixed
            }
            results.append(
                SearchResult(
                    doc_id=row["docid"],
                    path=row["path"],
                    title=row["title"],
                    description=row["description"],
                    keywords=row["keywords"],
                    category=row["category"],
                    url=page_url(row["url"], base_url, suffix),
                    image=row["image"],
                    updated=row["updated"],
                    content=row["page_content"],
                    snippet=self._clean_snippet(row["snippet"]),
                    rank=row["rank"],
                    words=row["words"],
                    extra=extra,
                )
            )
        return results

    @staticmethod
    def _clean_snippet(snippet: str) -> str:
        cleaned = strip_tags(snippet, allowed=("b",))
        return cleaned.replace(OPEN_MARK, "<b>").replace(CLOSE_MARK, "</b>")

    def words(self, phrase: str, doc_id: int) -> Set[str]:
        """The distinct words that made ``doc_id`` relevant to ``phrase``."""
        return self.fts.terms(phrase, doc_id)

    def get(self, path: str) -> Optional[Document]:
        row = self.db.row(
            """
            SELECT m.*, c.category FROM sitemap AS m
            LEFT JOIN categories AS c ON m.category_id = c.id
            WHERE m.path = ?
            """,
            (path,),
        )
        if row is None:
            return None
        return Document(
            doc_id=row["docid"],
            category_id=row["category_id"],
            path=row["path"],
            info=decode_info(row["info"]),
            image=row["image"],
            content=row["content"],
            hash=row["hash"],
            updated=row["updated"],
            deleted=bool(row["deleted"]),
            category=row["category"],
        )

    def links(self, category: str = "", limit: int = -1, offset: int = 0) -> List[Dict[str, Any]]:
        """
        Paths and update times in ``category`` and its subcategories, ordered
        by path.  Every page is listed when ``category`` is empty.
        """
        category = normalize_category(category)
        where = ""
        params: List[Any] = []
        if category:
            where = "WHERE c.category = ? OR c.category LIKE ? ESCAPE '\\'"
            params = [category, _like_escape(category) + "/%"]
        return self.db.all(
            f"""
            SELECT s.path, s.updated FROM sitemap AS s
            LEFT JOIN categories AS c ON s.category_id = c.id
            {where}
            ORDER BY s.path ASC
            LIMIT ? OFFSET ?
            """,
            params + [limit, offset],
        )

    def sitemap_index(self) -> List[Dict[str, Any]]:
        """Per top-level category: name, document count and latest update."""
        entries = []
        for cat in self.categories.top_level():
            row = self.db.row(
                """
                SELECT MAX(s.updated) AS updated, COUNT(*) AS count
                FROM categories AS c
                INNER JOIN sitemap AS s ON c.id = s.category_id
                WHERE c.lft BETWEEN ? AND ?
                """,
                (cat["lft"], cat["rgt"]),
            )
            entries.append(
                {"name": cat["name"], "count": row["count"], "updated": row["updated"] or 0}
            )
        return entries

    def stats(self) -> Dict[str, Any]:
        return self.db.get_stats()
