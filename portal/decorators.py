from functools import wraps

from django.shortcuts import redirect

from portal.auth import AuthSession, default_path
from portal.navigation import login_url, return_path


def role_required(*roles):
    """Render the view only for a logged-in user holding one of ``roles``.

    Anonymous users go to the login page with ``next`` set; users with another
    role go to their own dashboard.
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapped_view(request, *args, **kwargs):
            auth = AuthSession(request)
            if not auth.is_authenticated():
                return redirect(login_url(return_path(request)))
            if auth.role not in roles:
                return redirect(default_path(auth.role))
            return view_func(request, *args, **kwargs)
        return wrapped_view
    return decorator


student_required = role_required('student')
instructor_required = role_required('instructor')
admin_required = role_required('admin')


def public_only(view_func):
    @wraps(view_func)
    def wrapped_view(request, *args, **kwargs):
        auth = AuthSession(request)
        if auth.is_authenticated():
            return redirect(default_path(auth.role))
        return view_func(request, *args, **kwargs)
    return wrapped_view
