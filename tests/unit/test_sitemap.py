import sqlite3
import time

import pytest
from sitemap.index.sitemap import Sitemap, content_hash, normalize_weights, page_url
from sitemap.models.document import UpsertResult


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "sitemap.db")


@pytest.fixture
def sitemap(db_path):
    session = Sitemap(db_path)
    yield session
    session.close()


def _search_rows(sitemap):
    return sitemap.db.value("SELECT count(*) FROM search")


class TestUpsert:
    def test_insert(self, sitemap):
        result = sitemap.upsert("pages", {"path": "a", "title": "T", "content": "<p>hi</p>"})
        assert result is UpsertResult.INSERTED

        doc = sitemap.get("a")
        assert doc.category == "pages"
        assert doc.content == "<p>hi</p>"
        assert doc.deleted is False
        assert _search_rows(sitemap) == 1

    def test_indexes_stripped_content(self, sitemap):
        sitemap.upsert("pages", {"path": "a", "content": "<p>It was <em>amazing</em>.</p>"})
        doc = sitemap.get("a")
        indexed = sitemap.db.value("SELECT content FROM search WHERE rowid = ?", (doc.doc_id,))
        assert indexed == "It was amazing."

    def test_idempotent_upsert(self, sitemap):
        page = {"path": "a", "title": "T", "content": "<p>hi</p>"}
        sitemap.upsert("pages", page)
        first = sitemap.get("a")
        sitemap.db.execute("UPDATE sitemap SET updated = 1000 WHERE docid = ?", (first.doc_id,))

        assert sitemap.upsert("pages", page) is UpsertResult.UNCHANGED
        second = sitemap.get("a")
        assert second.doc_id == first.doc_id
        assert second.updated == 1000
        assert _search_rows(sitemap) == 1

    def test_hash_gated_update(self, sitemap):
        sitemap.upsert("pages", {"path": "a", "title": "T", "updated": 1000})
        assert sitemap.upsert("pages", {"path": "a", "title": "New"}) is UpsertResult.UPDATED

        doc = sitemap.get("a")
        assert doc.updated >= int(time.time()) - 5
        assert sitemap.db.value("SELECT title FROM search WHERE rowid = ?", (doc.doc_id,)) == "New"
        assert _search_rows(sitemap) == 1

    def test_explicit_updated(self, sitemap):
        sitemap.upsert("pages", {"path": "a", "title": "T", "updated": 1000})
        sitemap.upsert("pages", {"path": "a", "title": "New", "updated": -2000})
        assert sitemap.get("a").updated == 2000

    def test_non_numeric_updated_falls_back_to_now(self, sitemap):
        before = int(time.time())
        sitemap.upsert("pages", {"path": "a", "updated": "yesterday"})
        assert sitemap.get("a").updated >= before

    def test_path_is_case_insensitive(self, sitemap):
        sitemap.upsert("pages", {"path": "About", "title": "T"})
        assert sitemap.upsert("pages", {"path": "about", "title": "T2"}) is UpsertResult.UPDATED
        assert sitemap.db.value("SELECT count(*) FROM sitemap") == 1

    def test_site_root_path(self, sitemap):
        sitemap.upsert("", {"path": "", "title": "Home"})
        doc = sitemap.get("")
        assert doc.path == ""
        assert doc.category_id == 0

    def test_extra_fields_kept_in_info(self, sitemap):
        sitemap.upsert("pages", {"path": "a", "title": "T", "author": "Kim", "stars": 4})
        assert sitemap.get("a").info == {"author": "Kim", "stars": 4}

    def test_extra_field_only_change_is_ignored(self, sitemap, caplog):
        sitemap.upsert("pages", {"path": "a", "title": "T", "author": "Ann"})
        with caplog.at_level("DEBUG", logger="sitemap.index.sitemap"):
            result = sitemap.upsert("pages", {"path": "a", "title": "T", "author": "Bob"})
        assert result is UpsertResult.UNCHANGED
        assert sitemap.get("a").info == {"author": "Ann"}
        assert "Ignored extra field changes" in caplog.text

    def test_category_change_moves_document(self, sitemap):
        sitemap.upsert("pages", {"path": "a"})
        sitemap.upsert("posts", {"path": "a"})
        assert sitemap.get("a").category == "posts"


class TestResetAndDelete:
    def _seed(self, sitemap):
        for path in ("a", "b", "c"):
            sitemap.upsert("pages", {"path": path, "title": path.upper(), "updated": 1000})
        sitemap.upsert("posts", {"path": "p", "title": "P"})

    def test_reset_flags_category(self, sitemap):
        self._seed(sitemap)
        assert sitemap.reset("pages") == 3
        assert sitemap.get("a").deleted is True
        assert sitemap.get("p").deleted is False
        # The search index is untouched
        assert _search_rows(sitemap) == 4

    def test_reset_unknown_category(self, sitemap):
        assert sitemap.reset("nothing") == 0

    def test_reset_upsert_sweep_cycle(self, sitemap):
        self._seed(sitemap)
        sitemap.reset("pages")
        sitemap.upsert("pages", {"path": "a", "title": "A", "updated": 1000})
        assert sitemap.delete() == 2

        assert sitemap.get("a") is not None
        assert sitemap.get("b") is None
        assert sitemap.get("c") is None
        assert sitemap.get("p") is not None
        assert _search_rows(sitemap) == 2

    def test_soft_delete_revival(self, sitemap):
        sitemap.upsert("pages", {"path": "a", "title": "A", "updated": 1000})
        doc = sitemap.get("a")
        sitemap.reset("pages")

        result = sitemap.upsert("pages", {"path": "a", "title": "A"})
        assert result is UpsertResult.REVIVED
        revived = sitemap.get("a")
        assert revived.doc_id == doc.doc_id
        assert revived.updated == 1000
        assert revived.deleted is False

    def test_changed_after_reset_gets_fresh_updated(self, sitemap):
        sitemap.upsert("pages", {"path": "a", "title": "A", "updated": 1000})
        sitemap.reset("pages")
        assert sitemap.upsert("pages", {"path": "a", "title": "B"}) is UpsertResult.UPDATED
        assert sitemap.get("a").updated > 1000

    def test_delete_path(self, sitemap):
        self._seed(sitemap)
        assert sitemap.delete("b") == 1
        assert sitemap.get("b") is None
        assert _search_rows(sitemap) == 3

    def test_delete_missing_path(self, sitemap):
        assert sitemap.delete("missing") == 0

    def test_delete_ignores_flag(self, sitemap):
        self._seed(sitemap)
        sitemap.reset("pages")
        assert sitemap.delete("a") == 1
        assert sitemap.delete() == 2


class TestSession:
    def test_commit_on_close(self, db_path):
        sitemap = Sitemap(db_path)
        sitemap.upsert("pages/articles", {"path": "a", "title": "A"})

        other = sqlite3.connect(db_path)
        try:
            assert other.execute("SELECT count(*) FROM sitemap").fetchone()[0] == 0
            sitemap.close()
            assert other.execute("SELECT count(*) FROM sitemap").fetchone()[0] == 1
        finally:
            other.close()

    def test_close_is_idempotent(self, db_path):
        sitemap = Sitemap(db_path)
        sitemap.close()
        sitemap.close()
        assert sitemap.closed

    def test_closed_session_raises(self, db_path):
        sitemap = Sitemap(db_path)
        sitemap.close()
        with pytest.raises(sqlite3.ProgrammingError):
            sitemap.count("anything")

    def test_rollback_on_exception(self, db_path):
        with pytest.raises(RuntimeError):
            with Sitemap(db_path) as sitemap:
                sitemap.upsert("pages", {"path": "a"})
                raise RuntimeError("abort")

        with Sitemap(db_path) as sitemap:
            assert sitemap.get("a") is None
            assert sitemap.stats()["categories"] == 0

    def test_bounds_refreshed_at_close(self, db_path):
        with Sitemap(db_path) as sitemap:
            sitemap.upsert("pages/articles/news", {"path": "a"})
            assert sitemap.categories.range_for("pages") == (0, 0)

        with Sitemap(db_path) as sitemap:
            assert sitemap.categories.range_for("pages") == (1, 6)
            assert sitemap.categories.range_for("pages/articles/news") == (3, 4)

    def test_read_only_session_opens_no_transaction(self, db_path):
        with Sitemap(db_path) as sitemap:
            sitemap.count("anything")
            sitemap.search("anything")
            assert sitemap.db.transaction is False


def test_normalize_weights():
    assert normalize_weights(None) == [1, 1, 1, 1, 1]
    assert normalize_weights([0, 2]) == [0, 2, 1, 1, 1]
    assert normalize_weights([1, 2, 3, 4, 5, 6]) == [1, 2, 3, 4, 5]


def test_content_hash_covers_fixed_fields():
    page = {"category": "pages", "path": "a", "title": "T"}
    assert content_hash(page) == content_hash(dict(page))
    assert content_hash(page) != content_hash({**page, "image": "x.png"})


def test_page_url():
    assert page_url("about", "http://example.com/", ".html") == "http://example.com/about.html"
    assert page_url("", "http://example.com/", ".html") == "http://example.com/"


class TestLinks:
    def test_links_cover_subtree_only(self, sitemap):
        sitemap.upsert("page", {"path": "p0", "updated": 1})
        sitemap.upsert("pages", {"path": "p1", "updated": 1})
        sitemap.upsert("pages/articles", {"path": "p2", "updated": 1})
        assert [row["path"] for row in sitemap.links("page")] == ["p0"]
        assert [row["path"] for row in sitemap.links("pages")] == ["p1", "p2"]
        assert [row["path"] for row in sitemap.links("")] == ["p0", "p1", "p2"]

    def test_links_match_sitemap_index_counts(self, sitemap):
        sitemap.upsert("page", {"path": "p0"})
        sitemap.upsert("pages", {"path": "p1"})
        sitemap.upsert("pages/articles", {"path": "p2"})
        sitemap.categories.refresh()
        for entry in sitemap.sitemap_index():
            assert len(sitemap.links(entry["name"])) == entry["count"]

    def test_links_treat_wildcards_literally(self, sitemap):
        sitemap.upsert("docs_v2", {"path": "a"})
        sitemap.upsert("docsXv2", {"path": "b"})
        sitemap.upsert("docsXv2/old", {"path": "c"})
        assert [row["path"] for row in sitemap.links("docs_v2")] == ["a"]
