SCHEMA = """
-- Indexed pages, one row per path
CREATE TABLE IF NOT EXISTS sitemap (
    docid INTEGER PRIMARY KEY,
    category_id INTEGER NOT NULL DEFAULT 0,
    path TEXT UNIQUE COLLATE NOCASE,
    info TEXT NOT NULL DEFAULT '',
    image TEXT DEFAULT NULL,
    content TEXT NOT NULL DEFAULT '',
    hash TEXT NOT NULL DEFAULT '',
    updated INTEGER NOT NULL DEFAULT 0,
    deleted INTEGER NOT NULL DEFAULT 0
);

-- Category tree (nested set)
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY,
    category TEXT UNIQUE COLLATE NOCASE,
    parent INTEGER NOT NULL DEFAULT 0,
    level INTEGER NOT NULL DEFAULT 0,
    lft INTEGER NOT NULL DEFAULT 0,
    rgt INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_sitemap_category ON sitemap(category_id);
CREATE INDEX IF NOT EXISTS idx_sitemap_deleted ON sitemap(deleted);
CREATE INDEX IF NOT EXISTS idx_categories_bounds ON categories(lft, rgt);
"""

# FTS5 virtual table
# Column order is the weight order used by bm25(): path, title, description,
# keywords, content.  rowid is the sitemap docid.
FTS_SCHEMA = """
CREATE VIRTUAL TABLE IF NOT EXISTS search USING fts5(
    path,
    title,
    description,
    keywords,
    content,
    tokenize='porter unicode61'
);
"""

SEARCH_FIELDS = ("path", "title", "description", "keywords", "content")

# Snippet order of preference
SNIPPET_FIELDS = ("description", "content", "title", "path", "keywords")
