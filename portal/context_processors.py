from portal.auth import AuthSession, default_path


def auth_context(request):
    auth = AuthSession(request)
    authenticated = auth.is_authenticated()
    user = auth.user if authenticated else None
    return {
        'current_user': user,
        'current_role': user.role if user else None,
        'is_authenticated': authenticated,
        'home_path': default_path(user.role) if user else '/',
    }
