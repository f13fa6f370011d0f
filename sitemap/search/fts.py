from typing import List, Dict, Any, Optional, Sequence, Set, Tuple
from ..database.manager import DatabaseManager
from ..database.schema import SEARCH_FIELDS, SNIPPET_FIELDS
from ..database.statements import Statement, StatementCache
import logging
import re

logger = logging.getLogger(__name__)

# Match markers used internally by snippet() / highlight(); replaced before
# anything leaves this module so they never collide with page markup.
OPEN_MARK = "\x02"
CLOSE_MARK = "\x03"
ELLIPSIS = "…"

_MARKED = re.compile(f"{OPEN_MARK}(.*?){CLOSE_MARK}", re.S)
_QUOTED = re.compile(r'"([^"]*)"')


def _sanitize_fts5_term(term: str) -> str:
    """
    Sanitize a single term for FTS5 query.

    Removes characters that could break FTS5 syntax.
    Keeps alphanumeric, unicode characters, and apostrophes.

    Args:
        term: Raw search term

    Returns:
        Sanitized term safe for FTS5 query
    """
    sanitized = re.sub(r'["\^\(\)\-\:\{\}\[\]!~*+]', " ", term)
    return " ".join(sanitized.split()).lower()


def build_fts5_query(phrase: str, columns: Optional[Sequence[str]] = None) -> Optional[str]:
    """
    Build an FTS5 query from a user phrase.

    - Double-quoted runs become phrase queries: ``"storm warning"``
    - Other whitespace separated terms are AND-combined
    - A trailing ``*`` makes a term a prefix query
    - ``columns`` restricts matching to those fields with a column filter

    Args:
        phrase: Raw search phrase
        columns: Optional subset of the search fields

    Returns:
        FTS5 query string or None if no valid terms
    """
    if not phrase:
        return None

    parts = []
    for quoted in _QUOTED.findall(phrase):
        sanitized = _sanitize_fts5_term(quoted)
        if sanitized:
            parts.append(f'"{sanitized}"')

    for term in _QUOTED.sub(" ", phrase).split():
        prefix = term.endswith("*")
        sanitized = _sanitize_fts5_term(term)
        if not sanitized:
            continue
        parts.append(f'"{sanitized}"*' if prefix else f'"{sanitized}"')

    if not parts:
        return None

    query = " AND ".join(parts)
    if columns:
        query = "{" + " ".join(columns) + "} : (" + query + ")"
    return query


def marked_words(*texts: Optional[str]) -> List[str]:
    """Distinct lower-cased words inside match markers, in first-seen order."""
    words: List[str] = []
    for text in texts:
        if not text:
            continue
        for match in _MARKED.findall(text):
            for word in match.lower().split():
                if word not in words:
                    words.append(word)
    return words


def parse_limit(limit: Any) -> Tuple[int, int]:
    """
    Normalize a limit into ``(length, offset)``.

    Accepts None (no limit), an int, or a pagination string such as
    ``"20, 10"`` / ``" LIMIT 20, 10"`` (offset, length).  ``-1`` means no limit.
    """
    if limit is None or limit == "":
        return -1, 0
    if isinstance(limit, int):
        return limit, 0
    text = str(limit).strip()
    text = re.sub(r"(?i)^limit\s+", "", text)
    if "," in text:
        offset, length = (int(part.strip()) for part in text.split(",", 1))
        return length, offset
    match = re.match(r"(?i)^(\d+)\s+offset\s+(\d+)$", text)
    if match:
        return int(match.group(1)), int(match.group(2))
    return int(text), 0


class FullTextIndex:
    """
    The FTS5 ``search`` table kept in lockstep with the ``sitemap`` table.

    Writes go through the session's prepared statements; reads join the
    search hits (alias ``s``) with the page rows (alias ``m``) and their
    category (alias ``c``) so callers can filter on any of them.
    """

    JOIN = (
        "INNER JOIN sitemap AS m ON s.docid = m.docid "
        "LEFT JOIN categories AS c ON m.category_id = c.id"
    )

    def __init__(self, db: DatabaseManager, statements: StatementCache, snippet_tokens: int = 24):
        self.db = db
        self.statements = statements
        self.snippet_tokens = snippet_tokens

    # Writes
    def insert(self, fields: Sequence[str]) -> int:
        return self.statements.execute(Statement.INSERT_SEARCH, fields)

    def update(self, doc_id: int, fields: Sequence[str]):
        self.statements.execute(Statement.UPDATE_SEARCH, list(fields) + [doc_id])

    def delete(self, doc_id: int):
        self.statements.execute(Statement.DELETE_SEARCH, (doc_id,))

    # Reads
    @staticmethod
    def match_columns(weights: Optional[Sequence[float]]) -> List[str]:
        """Fields with a non-zero weight; empty when that is all of them or none."""
        if not weights:
            return []
        columns = [name for name, weight in zip(SEARCH_FIELDS, weights) if weight]
        if len(columns) == len(SEARCH_FIELDS):
            return []
        return columns

    def count(
        self,
        phrase: str,
        where: str = "",
        params: Sequence[Any] = (),
        weights: Optional[Sequence[float]] = None,
    ) -> int:
        fts_query = build_fts5_query(phrase, self.match_columns(weights))
        if not fts_query:
            return 0
        sql = f"""
            WITH s AS MATERIALIZED (
                SELECT rowid AS docid, path, title, description, keywords, content
                FROM search WHERE search MATCH ?
            )
            SELECT count(*) FROM s {self.JOIN}
            {where}
        """
        return self.db.value(sql, [fts_query] + list(params)) or 0

    def search(
        self,
        phrase: str,
        limit: Any = None,
        where: str = "",
        params: Sequence[Any] = (),
        weights: Sequence[float] = (1, 1, 1, 1, 1),
    ) -> List[Dict[str, Any]]:
        """
        Ranked matches, most relevant first.

        Matching is restricted to the fields with a non-zero weight (all of
        them when every weight is zero).  Each row carries ``rank``
        (``-bm25``, higher is better), one ``snippet`` picked in snippet
        preference order, and the matched ``words``.
        """
        fts_query = build_fts5_query(phrase, self.match_columns(weights))
        if not fts_query:
            return []

        length, offset = parse_limit(limit)
        snippets = ",\n".join(
            f"snippet(search, {SEARCH_FIELDS.index(name)}, ?, ?, ?, ?) AS snippet_{name}"
            for name in SNIPPET_FIELDS
        )
        highlights = ",\n".join(
            f"highlight(search, {SEARCH_FIELDS.index(name)}, ?, ?) AS marked_{name}"
            for name in SNIPPET_FIELDS
        )
        sql = f"""
            WITH s AS MATERIALIZED (
                SELECT rowid AS docid, path, title, description, keywords, content,
                       bm25(search, ?, ?, ?, ?, ?) AS score,
                       {snippets},
                       {highlights}
                FROM search WHERE search MATCH ?
            )
            SELECT s.*, COALESCE(c.category, '') AS category, m.path AS url,
                   m.info, m.image, m.updated, m.content AS page_content
            FROM s {self.JOIN}
            {where}
            ORDER BY s.score, s.docid
            LIMIT ? OFFSET ?
        """
        args: List[Any] = [float(w) for w in weights]
        for _ in SNIPPET_FIELDS:
            args += [OPEN_MARK, CLOSE_MARK, ELLIPSIS, self.snippet_tokens]
        for _ in SNIPPET_FIELDS:
            args += [OPEN_MARK, CLOSE_MARK]
        args.append(fts_query)
        args += list(params)
        args += [length, offset]

        results = []
        for row in self.db.all(sql, args):
            row["snippet"] = self.offsets_snippet(row)
            row["words"] = marked_words(*(row.pop(f"marked_{name}") for name in SNIPPET_FIELDS))
            for name in SNIPPET_FIELDS:
                row.pop(f"snippet_{name}")
            score = row.pop("score")
            row["rank"] = -score if score else 0.0
            results.append(row)
        return results

    @staticmethod
    def offsets_snippet(row: Dict[str, Any]) -> str:
        """First snippet, in preference order, that contains a match."""
        for name in SNIPPET_FIELDS:
            snippet = row.get(f"snippet_{name}") or ""
            if OPEN_MARK in snippet:
                return snippet
        return row.get(f"snippet_{SNIPPET_FIELDS[0]}") or ""

    def terms(self, phrase: str, doc_id: int) -> Set[str]:
        fts_query = build_fts5_query(phrase)
        if not fts_query:
            return set()
        highlights = ", ".join(
            f"highlight(search, {i}, ?, ?)" for i in range(len(SEARCH_FIELDS))
        )
        args: List[Any] = [OPEN_MARK, CLOSE_MARK] * len(SEARCH_FIELDS)
        row = self.db.execute(
            f"SELECT {highlights} FROM search WHERE search MATCH ? AND rowid = ?",
            args + [fts_query, doc_id],
        ).fetchone()
        if not row:
            return set()
        return set(marked_words(*tuple(row)))
