"""Wiki views."""

import logging
from functools import wraps

from django.conf import settings
from django.contrib import messages
from django.http import Http404, HttpResponse, HttpResponseBadRequest, HttpResponseNotFound
from django.shortcuts import redirect, render

from .forms import CreatePageForm, EditPageForm
from .services.compat import get_compatibility_gate, parse_client
from .services.dispatch import FILE, ResourceDispatcher
from .services.edits import build_commit_info, update_wiki_page
from .services.git_storage import (
    DuplicatePageError,
    GitOperationError,
    GitStorageService,
    InvalidPathError,
    get_storage_service,
)
from .services.locator import ROOT, apply_page_dir, find_sub_page, locate_page
from .services.paths import resolve_path
from .services.search import rank_hits
from .tasks import sync_to_remote

logger = logging.getLogger(__name__)


def get_base_path(request) -> str:
    """Externally visible mount point of the wiki, without a trailing slash.

    Derived from each request and handed to the store; never kept in settings.
    """
    script_name = request.path[: len(request.path) - len(request.path_info)]
    return script_name.rstrip("/")


def storage_for(request) -> GitStorageService:
    return get_storage_service(base_path=get_base_path(request))


def page_url(request, page_path: str) -> str:
    return f"{get_base_path(request)}/{page_path}"


def supported_browser_required(view):
    """Render an error page for browsers older than the configured minimum."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        user_agent = request.META.get("HTTP_USER_AGENT", "")
        if not get_compatibility_gate().is_supported(user_agent):
            client = parse_client(user_agent)
            return render(
                request,
                "wiki/error.html",
                {"message": f"Sorry, {client.family} is not supported. Please upgrade your browser."},
                status=400,
            )
        return view(request, *args, **kwargs)

    return wrapper


def _find_page(storage: GitStorageService, page_path: str):
    location = resolve_path(page_path)
    directory = apply_page_dir(location.directory or ROOT, settings.WIKI_PAGE_FILE_DIR)
    try:
        return location, directory, locate_page(storage, location.name, directory)
    except InvalidPathError:
        raise Http404("Invalid page path")


def home(request):
    """Redirect home to the default page."""
    return redirect(page_url(request, settings.WIKI_DEFAULT_PAGE))


def reserved_asset(request, path: str = ""):
    """Asset prefixes belong to the frontend bundle, never to the wiki."""
    return HttpResponseNotFound()


def _render_page_view(request, storage: GitStorageService, resolution):
    wiki_page = resolution.page
    rendered = storage.render(wiki_page)

    sections = {}
    for key, section in (("header", "_Header"), ("footer", "_Footer"), ("sidebar", "_Sidebar")):
        sub_page = find_sub_page(storage, wiki_page, section)
        sections[key] = storage.render(sub_page).html if sub_page else None

    return render(
        request,
        "wiki/page.html",
        {
            "page": wiki_page,
            "name": resolution.location.name,
            "content": rendered.html,
            "toc_content": rendered.toc if settings.WIKI_UNIVERSAL_TOC else None,
            "mathjax": settings.WIKI_MATHJAX,
            "css": settings.WIKI_CSS,
            "h1_title": settings.WIKI_H1_TITLE,
            "editable": resolution.editable,
            "version": resolution.version,
            "base_path": storage.base_path,
            **sections,
        },
    )


def resource(request, path: str):
    """Display a page, a page at a pinned revision, or a raw file."""
    storage = storage_for(request)
    dispatcher = ResourceDispatcher(storage, settings.WIKI_PAGE_FILE_DIR)
    resolution = dispatcher.dispatch(path)

    if not resolution.found:
        return HttpResponseNotFound("Page not found")

    if resolution.kind == FILE:
        return HttpResponse(resolution.file.raw_data, content_type=resolution.file.mime_type)

    return _render_page_view(request, storage, resolution)


def search(request):
    """Search wiki pages."""
    query = request.GET.get("q", "").strip()

    if not query:
        return HttpResponseBadRequest("Query parameter 'q' is required")

    storage = storage_for(request)
    results = rank_hits(storage.search(query))

    return render(
        request,
        "wiki/search.html",
        {
            "query": query,
            "name": query,
            "results": results,
            "base_path": storage.base_path,
        },
    )


@supported_browser_required
def edit(request, page_path: str):
    """Edit a wiki page."""
    storage = storage_for(request)
    location, _directory, wiki_page = _find_page(storage, page_path)

    if wiki_page is None:
        return redirect(f"{get_base_path(request)}/create/{page_path}")

    if request.method == "POST":
        form = EditPageForm(request.POST)
        if form.is_valid():
            data = form.cleaned_data
            commit = build_commit_info(data["message"], request.session)
            try:
                committed = update_wiki_page(
                    storage,
                    wiki_page,
                    data["content"],
                    commit,
                    name=data["rename"],
                    fmt=data["format"],
                )
            except DuplicatePageError as e:
                form.add_error("rename", str(e))
            except ValueError as e:
                form.add_error("message", str(e))
            except GitOperationError:
                logger.error("Failed to commit edit of %s", wiki_page.path)
                raise
            else:
                if committed:
                    sync_to_remote.delay()
                    messages.success(request, "Page saved successfully.")
                new_name = data["rename"] if committed and data["rename"] else wiki_page.name
                target = f"{wiki_page.directory}/{new_name}" if wiki_page.directory else new_name
                return redirect(page_url(request, target))
    else:
        form = EditPageForm(
            initial={
                "content": wiki_page.raw_data,
                "format": wiki_page.format,
            }
        )

    return render(
        request,
        "wiki/edit.html",
        {
            "page": wiki_page,
            "name": location.name,
            "form": form,
            "base_path": storage.base_path,
        },
    )


@supported_browser_required
def create(request, page_path: str):
    """Create a wiki page."""
    storage = storage_for(request)
    location, directory, wiki_page = _find_page(storage, page_path)

    if wiki_page is not None:
        return redirect(page_url(request, wiki_page.url_path))
    if not location.name:
        raise Http404("A page name is required")

    if request.method == "POST":
        form = CreatePageForm(request.POST)
        if form.is_valid():
            data = form.cleaned_data
            message = data["message"] or f"Created {location.name} ({data['format']})"
            commit = build_commit_info(message, request.session)
            try:
                storage.write_page(location.name, directory, data["format"], data["content"], commit)
            except DuplicatePageError:
                return redirect(page_url(request, page_path))
            except ValueError as e:
                form.add_error(None, str(e))
            except GitOperationError:
                logger.error("Failed to create page %s", page_path)
                raise
            else:
                sync_to_remote.delay()
                messages.success(request, "Page created successfully.")
                return redirect(page_url(request, page_path))
    else:
        form = CreatePageForm(initial={"format": settings.WIKI_DEFAULT_MARKUP})

    return render(
        request,
        "wiki/create.html",
        {
            "name": location.name,
            "page_path": page_path,
            "form": form,
            "base_path": storage.base_path,
        },
    )


def history(request, page_path: str):
    """Show the revisions of a page."""
    storage = storage_for(request)
    location, _directory, wiki_page = _find_page(storage, page_path)

    if wiki_page is None:
        return HttpResponseNotFound("Page not found")

    return render(
        request,
        "wiki/history.html",
        {
            "page": wiki_page,
            "name": location.name,
            "changes": storage.page_history(wiki_page),
            "base_path": storage.base_path,
        },
    )
