import json
import logging
from typing import Any, Dict, Optional

import jwt

from portal.models import User

logger = logging.getLogger(__name__)

TOKEN_KEY = 'token'
USER_KEY = 'user'

ROLE_HOME = {
    'admin': '/admin/dashboard',
    'instructor': '/instructor/dashboard',
    'student': '/dashboard',
}


def default_path(role: Optional[str]) -> str:
    return ROLE_HOME.get(role or '', '/')


def token_expired(token: str) -> bool:
    # The portal has no signing key; only the exp claim is checked here.
    try:
        jwt.decode(token, options={'verify_signature': False, 'verify_exp': True})
    except jwt.ExpiredSignatureError:
        return True
    except jwt.InvalidTokenError:
        return False
    return False


class AuthSession:
    """Current user and token, kept in the Django session."""

    def __init__(self, request):
        self.session = request.session

    @property
    def token(self) -> Optional[str]:
        return self.session.get(TOKEN_KEY)

    @property
    def user(self) -> Optional[User]:
        raw = self.session.get(USER_KEY)
        if not raw:
            return None
        try:
            return User.from_api(json.loads(raw))
        except (TypeError, ValueError):
            logger.warning("Discarding unreadable user in session")
            return None

    @property
    def role(self) -> Optional[str]:
        user = self.user
        return user.role if user else None

    def is_authenticated(self) -> bool:
        token = self.token
        if not token or not self.session.get(USER_KEY):
            return False
        if token_expired(token):
            self.logout()
            return False
        return True

    def login(self, token: str, user_data: Dict[str, Any]) -> None:
        self.session.cycle_key()
        self.session[TOKEN_KEY] = token
        self.session[USER_KEY] = json.dumps(user_data)

    def update_user(self, user_data: Dict[str, Any]) -> None:
        self.session[USER_KEY] = json.dumps(user_data)

    def logout(self) -> None:
        self.session.pop(TOKEN_KEY, None)
        self.session.pop(USER_KEY, None)
