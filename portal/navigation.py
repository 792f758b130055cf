from urllib.parse import urlencode, urlparse

from django.utils.http import url_has_allowed_host_and_scheme

BACKGROUND_KEY = 'background_location'
MODAL_PATHS = ('/login', '/signup', '/instructor-auth')


def safe_path(request, target) -> str:
    """Return ``target`` when it is a same-host path, otherwise ''."""
    if not target:
        return ''
    if not url_has_allowed_host_and_scheme(target, allowed_hosts={request.get_host()}, require_https=request.is_secure()):
        return ''
    parsed = urlparse(target)
    path = parsed.path or '/'
    return f'{path}?{parsed.query}' if parsed.query else path


def login_url(next_path: str = '') -> str:
    if not next_path:
        return '/login'
    return '/login?' + urlencode({'next': next_path})


def is_modal_path(path: str) -> bool:
    return urlparse(path).path in MODAL_PATHS


def capture_background(request) -> str:
    """Remember the page a login/signup dialog was opened over.

    An explicit ``?background=`` wins, then the referring page. Opening one
    dialog from another keeps the background already stored; anything else
    falls back to the home page.
    """
    candidate = safe_path(request, request.GET.get('background'))
    if not candidate:
        candidate = safe_path(request, request.META.get('HTTP_REFERER'))
    if candidate and not is_modal_path(candidate):
        request.session[BACKGROUND_KEY] = candidate
    elif not candidate or not request.session.get(BACKGROUND_KEY):
        request.session[BACKGROUND_KEY] = '/'
    return request.session[BACKGROUND_KEY]


def background_location(request) -> str:
    return request.session.get(BACKGROUND_KEY) or '/'


def clear_background(request) -> None:
    request.session.pop(BACKGROUND_KEY, None)


def return_path(request) -> str:
    """Where to come back to after logging in.

    A POST cannot be replayed, so it returns to the posted ``next`` or the
    referring page instead of its own URL.
    """
    if request.method == 'GET':
        return request.get_full_path()
    return safe_path(request, request.POST.get('next')) or safe_path(request, request.META.get('HTTP_REFERER'))
