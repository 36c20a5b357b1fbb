"""Credential loader: decrypted user secrets for the execution context.

The result is merged under ``variables.user`` so steps can reference
``{{user.openai}}``, ``{{user.stripe}}`` and so on.
"""

from typing import Optional

import structlog

from core.constants import CredentialType
from core.security import CredentialVault, get_vault
from workflow.store import WorkflowStore

logger = structlog.get_logger(__name__)

# OAuth tokens first, API keys second: an API key wins when both exist for a platform
_LOAD_ORDER = {CredentialType.OAUTH.value: 0, CredentialType.API_KEY.value: 1}


class CredentialLoader:
    """Loads and decrypts every stored credential of a user."""

    def __init__(self, store: WorkflowStore, vault: Optional[CredentialVault] = None):
        self.store = store
        self._vault = vault

    def _get_vault(self) -> CredentialVault:
        if self._vault is None:
            self._vault = get_vault()
        return self._vault

    async def load_user_credentials(self, user_id: str) -> dict[str, str]:
        """Return ``{platform: secret}`` for ``user_id``.

        Never raises. A credential that cannot be decrypted is logged and
        skipped; if the credentials cannot be read at all the result is empty.
        """
        try:
            rows = await self.store.get_user_credentials(user_id)
        except Exception as e:
            logger.error("Failed to load user credentials", user_id=user_id, error=str(e))
            return {}

        if not rows:
            return {}

        try:
            vault = self._get_vault()
        except ValueError as e:
            logger.error("Credential vault unavailable", user_id=user_id, error=str(e))
            return {}

        credentials: dict[str, str] = {}
        for row in sorted(rows, key=lambda r: _LOAD_ORDER.get(r.credential_type, 2)):
            try:
                credentials[row.platform] = vault.decrypt(row.encrypted_value)
            except ValueError as e:
                logger.warning(
                    "Skipping credential that failed to decrypt",
                    user_id=user_id,
                    platform=row.platform,
                    credential_type=row.credential_type,
                    error=str(e),
                )

        logger.debug("User credentials loaded", user_id=user_id, platforms=sorted(credentials))
        return credentials
