from functools import lru_cache

from django.conf import settings


class AdminPolicy:
    """
    Site-admin allowlist, built once from configuration.
    Comparison is case-insensitive on the email address.
    """

    def __init__(self, emails):
        self._emails = frozenset(
            e.strip().lower() for e in emails if e and e.strip()
        )

    def is_site_admin(self, email) -> bool:
        if not email:
            return False
        return email.strip().lower() in self._emails

    def __len__(self):
        return len(self._emails)


@lru_cache(maxsize=1)
def get_admin_policy() -> AdminPolicy:
    return AdminPolicy(settings.ADMIN_EMAILS)
