"""Sitemap HTTP server.

Serves XML sitemaps and search results, and keeps the index in step with
the HTML pages of the hosting app.
"""
