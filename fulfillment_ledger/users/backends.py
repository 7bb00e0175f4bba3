import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.utils.crypto import constant_time_compare

logger = logging.getLogger(__name__)

User = get_user_model()


class SharedCredentialBackend(ModelBackend):
    """
    Authenticate the single username/password pair the operators share,
    configured by LEDGER_APP_USERNAME and LEDGER_APP_PASSWORD.

    The pair is mapped to a regular Django user, created on first login, so
    sessions and request.user work as usual.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        expected_username = settings.LEDGER_APP_USERNAME
        expected_password = settings.LEDGER_APP_PASSWORD
        if not expected_username or not expected_password:
            return None
        if username is None or password is None:
            return None

        username_ok = constant_time_compare(username, expected_username)
        password_ok = constant_time_compare(password, expected_password)
        if not (username_ok and password_ok):
            logger.warning(f"Failed shared login attempt for username {username!r}")
            return None

        user, created = User.objects.get_or_create(username=expected_username)
        if created:
            user.set_unusable_password()
            user.save(update_fields=["password"])
            logger.info(f"Created operator account {user.username}")

        if not self.user_can_authenticate(user):
            return None
        return user
