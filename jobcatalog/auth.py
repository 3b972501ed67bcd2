"""Shared-passcode gate for admin sessions."""

import hmac
from typing import Optional

from .logger import get_logger
from .storage import KeyValueStore

logger = get_logger()

SESSION_KEY = "jobcatalog_admin_session"
SESSION_ACTIVE = b"true"


class AccessGate:
    """
    Checks a single configured passcode and remembers the outcome in the store.

    There are no accounts and no lockout here; counting failed attempts is up
    to the caller. With no passcode configured every attempt is rejected.
    """

    def __init__(self, store: KeyValueStore, passcode: Optional[str]):
        self.store = store
        self.passcode = passcode

    def authenticate(self, candidate: str) -> bool:
        if not self.passcode:
            logger.warning("Admin login attempted but no passcode is configured")
            logger.record_auth_attempt(False)
            return False

        ok = hmac.compare_digest(candidate.encode("utf-8"), self.passcode.encode("utf-8"))
        logger.record_auth_attempt(ok)
        if not ok:
            logger.warning("Rejected admin login")
            return False

        if not self.store.write(SESSION_KEY, SESSION_ACTIVE):
            logger.error("Admin login accepted but the session could not be saved")
        else:
            logger.info("Admin session started")
        return True

    def is_authenticated(self) -> bool:
        return self.store.read(SESSION_KEY) == SESSION_ACTIVE

    def logout(self) -> None:
        self.store.remove(SESSION_KEY)
        logger.info("Admin session ended")
