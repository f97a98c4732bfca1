"""
Encrypted Token Store.

Durable key/value storage for the session credentials the client keeps
between runs: the access ``token`` and the ``refreshToken``.  Values are
encrypted with AES-256-GCM and stored in the SQLite ``client_storage``
table, one row per key.

Security model
--------------
- The encryption key is derived at runtime from machine-specific
  characteristics (hostname + OS username) via PBKDF2-HMAC-SHA256 with
  a per-machine random salt.  The key is never persisted to disk.
- GCM authenticates every value; a row that fails verification (copied
  database, changed machine identity, tampering) is deleted and treated
  as absent.
- Logout deletes both rows.

Only ``AuthStore`` writes tokens; every other component reads.
"""

from __future__ import annotations

import getpass
import os
import platform
import socket
import stat
import threading
from pathlib import Path
from typing import Optional

from Crypto.Cipher import AES
from Crypto.Hash import SHA256
from Crypto.Protocol.KDF import PBKDF2

from civicportal.database import DatabaseManager
from civicportal.logger import StructuredLogger

TOKEN_KEY: str = "token"
REFRESH_TOKEN_KEY: str = "refreshToken"


class TokenStore:
    """Encrypted persistence for auth tokens.

    Parameters
    ----------
    db:
        An initialised ``DatabaseManager`` whose schema contains the
        ``client_storage`` table.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    salt_path:
        Location of the per-machine KDF salt file.
    iterations:
        PBKDF2 iteration count.  Tests pass a small value.
    """

    _KEY_LENGTH: int = 32  # 256 bits
    _SALT_LENGTH: int = 32

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        salt_path: Path,
        iterations: int = 600_000,
    ) -> None:
        self._db: DatabaseManager = db
        self._logger: StructuredLogger = logger
        self._salt_path: Path = Path(salt_path)
        self._iterations: int = iterations
        self._key: Optional[bytes] = None
        self._key_lock: threading.Lock = threading.Lock()

    # ------------------------------------------------------------------
    # Token accessors
    # ------------------------------------------------------------------

    def get_token(self) -> Optional[str]:
        return self._read(TOKEN_KEY)

    def get_refresh_token(self) -> Optional[str]:
        return self._read(REFRESH_TOKEN_KEY)

    def save_tokens(self, token: str, refresh_token: Optional[str]) -> None:
        """Persist *token* and *refresh_token* together.

        A ``None`` refresh token removes any stored one so the two keys
        never describe different sessions.
        """
        with self._db.write_lock:
            self._put(TOKEN_KEY, token)
            if refresh_token:
                self._put(REFRESH_TOKEN_KEY, refresh_token)
            else:
                self._delete(REFRESH_TOKEN_KEY)
            self._db.sqlite.commit()
        self._logger.debug("Session tokens persisted.")

    def clear_tokens(self) -> None:
        """Delete both tokens.  Safe to call when nothing is stored."""
        with self._db.write_lock:
            self._delete(TOKEN_KEY)
            self._delete(REFRESH_TOKEN_KEY)
            self._db.sqlite.commit()
        self._logger.info("Session tokens cleared.", extra={"event": "TOKENS_CLEARED"})

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _read(self, key: str) -> Optional[str]:
        """Return the decrypted value stored under *key*, or ``None``.

        A row that fails GCM verification is deleted.
        """
        row = self._db.sqlite.execute(
            "SELECT encrypted_value, nonce, tag FROM client_storage WHERE key = ?",
            (key,),
        ).fetchone()
        if row is None:
            return None

        try:
            cipher = AES.new(self._derive_key(), AES.MODE_GCM, nonce=row["nonce"])
            plaintext: bytes = cipher.decrypt_and_verify(row["encrypted_value"], row["tag"])
        except (ValueError, KeyError) as exc:
            self._logger.warning(
                "Stored value for '%s' failed verification (corrupted data or "
                "machine identity changed): %s. Discarding it.",
                key,
                exc,
            )
            with self._db.write_lock:
                self._delete(key)
                self._db.sqlite.commit()
            return None

        return plaintext.decode("utf-8")

    def _put(self, key: str, value: str) -> None:
        """Encrypt and upsert one value.  Caller holds the lock and commits."""
        cipher = AES.new(self._derive_key(), AES.MODE_GCM)
        ciphertext, tag = cipher.encrypt_and_digest(value.encode("utf-8"))
        self._db.sqlite.execute(
            """
            INSERT INTO client_storage (key, encrypted_value, nonce, tag)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                encrypted_value = excluded.encrypted_value,
                nonce           = excluded.nonce,
                tag             = excluded.tag,
                updated_at      = CURRENT_TIMESTAMP
            """,
            (key, ciphertext, cipher.nonce, tag),
        )

    def _delete(self, key: str) -> None:
        self._db.sqlite.execute("DELETE FROM client_storage WHERE key = ?", (key,))

    def _derive_key(self) -> bytes:
        """Derive (once) the 256-bit AES key from machine identity.

        ``hostname:username`` binds the key to this machine so a copied
        database file is useless elsewhere; the entropy comes from the
        random per-machine salt.

        Raises
        ------
        OSError
            If the per-machine salt file cannot be created or read.
        """
        with self._key_lock:
            if self._key is None:
                password: str = f"{socket.gethostname()}:{self._os_username()}"
                self._key = PBKDF2(
                    password=password,
                    salt=self._get_or_create_salt(),
                    dkLen=self._KEY_LENGTH,
                    count=self._iterations,
                    hmac_hash_module=SHA256,
                )
            return self._key

    @staticmethod
    def _os_username() -> str:
        try:
            return getpass.getuser()
        except (KeyError, OSError):
            return "unknown"

    def _get_or_create_salt(self) -> bytes:
        """Return the per-machine random salt, creating it on first run.

        Raises
        ------
        OSError
            If the salt file cannot be read or written.
        """
        if self._salt_path.exists():
            data: bytes = self._salt_path.read_bytes()
            if len(data) == self._SALT_LENGTH:
                return data
            self._logger.warning(
                "Salt file has unexpected length (%d); regenerating.", len(data),
            )
        salt: bytes = os.urandom(self._SALT_LENGTH)
        self._salt_path.parent.mkdir(parents=True, exist_ok=True)
        self._salt_path.write_bytes(salt)

        if platform.system() != "Windows":
            self._salt_path.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 0o600

        self._logger.info("Per-machine token salt created at %s.", self._salt_path)
        return salt
