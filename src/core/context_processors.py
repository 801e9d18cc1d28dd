"""Template context processors."""

from django.conf import settings


def get_title(request):
    """Include site title in template context."""
    return {"site_title": settings.SITE_TITLE}


def get_browser_support(request):
    """Flag browsers below the configured minimum versions."""
    from wiki.services.compat import get_compatibility_gate

    user_agent = request.META.get("HTTP_USER_AGENT", "") if request is not None else ""
    return {"browser_supported": get_compatibility_gate().is_supported(user_agent)}
