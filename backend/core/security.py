"""
Credential encryption for the workflow automation engine.

User secrets (OAuth access tokens, API keys) are stored encrypted with
Fernet (AES-128-CBC + HMAC-SHA256) and only decrypted when a workflow run
loads them into its execution context.
"""

from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from app.config import get_settings


class CredentialVault:
    """
    Manages encryption and decryption of stored credentials using Fernet.
    """

    def __init__(self, key: Optional[str] = None):
        """
        Initialize the vault with an encryption key.

        Args:
            key: Encryption key (urlsafe base64). If None, uses ENCRYPTION_KEY from settings.

        Raises:
            ValueError: If no key is configured or the key is malformed
        """
        if key is None:
            key = get_settings().ENCRYPTION_KEY
        if not key:
            raise ValueError("ENCRYPTION_KEY is required for credential encryption")

        self.cipher = Fernet(key.encode() if isinstance(key, str) else key)

    @staticmethod
    def generate_key() -> str:
        """Generate a fresh key suitable for ENCRYPTION_KEY."""
        return Fernet.generate_key().decode()

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a string using Fernet.

        Args:
            plaintext: Plain text to encrypt

        Returns:
            Encrypted string (base64 encoded)
        """
        if isinstance(plaintext, str):
            plaintext = plaintext.encode()
        return self.cipher.encrypt(plaintext).decode()

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a string using Fernet.

        Args:
            ciphertext: Encrypted string to decrypt

        Returns:
            Decrypted plain text

        Raises:
            ValueError: If decryption fails (wrong key, tampered or truncated token)
        """
        try:
            if isinstance(ciphertext, str):
                ciphertext = ciphertext.encode()
            return self.cipher.decrypt(ciphertext).decode()
        except (InvalidToken, TypeError) as e:
            raise ValueError(f"Decryption failed: {e.__class__.__name__}") from e


_vault: Optional[CredentialVault] = None


def get_vault() -> CredentialVault:
    """Get or create the process-wide vault."""
    global _vault
    if _vault is None:
        _vault = CredentialVault()
    return _vault
