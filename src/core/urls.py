"""URL configuration for wikigate."""

from django.urls import path, re_path

from wiki import views as wiki_views

from . import views as core_views

urlpatterns = [
    # Homepage redirects to the default page
    path("", wiki_views.home, name="home"),
    path("health", core_views.health, name="health"),
    # Frontend asset prefixes are never wiki content
    re_path(r"^(?P<path>(javascript|css|images).*)$", wiki_views.reserved_asset, name="reserved_asset"),
    path("search", wiki_views.search, name="search"),
    path("edit/<path:page_path>", wiki_views.edit, name="edit"),
    path("create/<path:page_path>", wiki_views.create, name="create"),
    path("history/<path:page_path>", wiki_views.history, name="history"),
    # Page pinned to a revision
    re_path(r"^(?P<path>.+?/[0-9a-f]{40})$", wiki_views.resource, name="version"),
    # Page, raw file or 404
    re_path(r"^(?P<path>.+)$", wiki_views.resource, name="page"),
]
