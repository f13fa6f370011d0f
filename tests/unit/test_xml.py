import re

from sitemap.index.sitemap import Sitemap
from sitemap.index.xml import SitemapRequest, classify, index_xml, leaf_xml, servable, sitemap_name


def test_classify_index():
    assert classify("sitemap.xml") == SitemapRequest("index")
    assert classify("/sitemap.xml") == SitemapRequest("index")


def test_classify_leaf():
    assert classify("sitemap-pages.xml") == SitemapRequest("leaf", "pages", 1)
    assert classify("sitemap-pages-3.xml") == SitemapRequest("leaf", "pages", 3)
    assert classify("Sitemap-Blog-Posts-2.XML") == SitemapRequest("leaf", "blog-posts", 2)


def test_classify_other():
    assert classify("about") is None
    assert classify("sitemap.html") is None
    assert classify("sitemap-.xml") is None


def test_canonical_names():
    assert sitemap_name("pages") == "sitemap-pages.xml"
    assert sitemap_name("pages", 1) == "sitemap-pages.xml"
    assert sitemap_name("Pages", 2) == "sitemap-pages-2.xml"
    assert classify("sitemap-pages-1.xml").name == "sitemap-pages.xml"


def test_leaf_xml():
    rows = [{"path": "", "updated": 0}, {"path": "a&b", "updated": 86400}]
    xml, last_modified = leaf_xml(rows, "http://example.com/", ".html")
    assert last_modified == 86400
    assert xml.splitlines() == [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        "\t<url>",
        "\t\t<loc>http://example.com/</loc>",
        "\t\t<lastmod>1970-01-01</lastmod>",
        "\t</url>",
        "\t<url>",
        "\t\t<loc>http://example.com/a&amp;b.html</loc>",
        "\t\t<lastmod>1970-01-02</lastmod>",
        "\t</url>",
        "</urlset>",
    ]


def test_leaf_xml_empty():
    assert leaf_xml([]) is None


def test_index_xml_pages():
    entries = [
        {"name": "pages", "count": 5, "updated": 86400},
        {"name": "empty", "count": 0, "updated": 0},
    ]
    xml, last_modified = index_xml(entries, "http://example.com/", limit=2)
    assert last_modified == 86400
    assert "<sitemapindex" in xml
    assert xml.count("<sitemap>") == 3
    assert "<loc>http://example.com/sitemap-pages.xml</loc>" in xml
    assert "<loc>http://example.com/sitemap-pages-2.xml</loc>" in xml
    assert "<loc>http://example.com/sitemap-pages-3.xml</loc>" in xml
    assert "sitemap-empty" not in xml


def test_index_xml_empty():
    assert index_xml([]) is None


def test_sitemap_pagination_from_index(tmp_path):
    db_path = str(tmp_path / "sitemap.db")
    with Sitemap(db_path) as sitemap:
        for n, path in enumerate(["e", "c", "a", "d", "b"]):
            sitemap.upsert("pages", {"path": path, "updated": 86400 * (n + 1)})
        sitemap.upsert("posts/news", {"path": "news/1", "updated": 86400})

    with Sitemap(db_path) as sitemap:
        entries = sitemap.sitemap_index()
        assert entries == [
            {"name": "pages", "count": 5, "updated": 86400 * 5},
            {"name": "posts", "count": 1, "updated": 86400},
        ]
        assert [row["path"] for row in sitemap.links("pages", 2, 2)] == ["c", "d"]

    xml, _ = index_xml(entries, "http://example.com/", limit=2)
    assert xml.count("sitemap-pages") == 3
    assert xml.count("sitemap-posts") == 1


def test_classify_wider_category_names():
    assert classify("sitemap-blog2.xml") == SitemapRequest("leaf", "blog2", 1)
    assert classify("sitemap-docs_v2-3.xml") == SitemapRequest("leaf", "docs_v2", 3)
    assert classify("sitemap-v1.2.xml") == SitemapRequest("leaf", "v1.2", 1)


def test_servable():
    assert servable("blog2")
    assert servable("Blog-Posts", 4)
    assert not servable("news-2")
    assert not servable("my pages")


def test_index_xml_skips_unservable_names(caplog):
    entries = [
        {"name": "blog2", "count": 3, "updated": 86400},
        {"name": "news-2", "count": 1, "updated": 86400},
        {"name": "my pages", "count": 1, "updated": 86400},
    ]
    with caplog.at_level("WARNING", logger="sitemap.index.xml"):
        xml, _ = index_xml(entries, "http://example.com/", limit=2)
    locs = re.findall(r"<loc>http://example\.com/(.*?)</loc>", xml)
    assert locs == ["sitemap-blog2.xml", "sitemap-blog2-2.xml"]
    assert "news-2" in caplog.text


def test_index_locs_are_served(tmp_path):
    db_path = str(tmp_path / "sitemap.db")
    with Sitemap(db_path) as sitemap:
        for category in ("pages", "blog2", "docs_v2", "news-2", "Mixed Case"):
            sitemap.upsert(category, {"path": category + "/a", "updated": 86400})

    with Sitemap(db_path) as sitemap:
        xml, _ = index_xml(sitemap.sitemap_index(), "", limit=1)
        locs = re.findall(r"<loc>(.*?)</loc>", xml)
        assert len(locs) == 3
        for loc in locs:
            wanted = classify(loc)
            assert wanted is not None and wanted.name == loc
            assert sitemap.links(wanted.category, 1, 0)
