import logging

from django.contrib import messages
from django.shortcuts import redirect

from portal.api import Unauthorized
from portal.auth import AuthSession
from portal.navigation import login_url, return_path

logger = logging.getLogger(__name__)


class ApiAuthMiddleware:
    """Turns a backend 401 that no view handled into a trip to the login page."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not isinstance(exception, Unauthorized):
            return None
        AuthSession(request).logout()
        logger.info("Session rejected by backend on %s", request.path)
        messages.error(request, 'Your session has expired. Please log in again.')
        return redirect(login_url(return_path(request)))
