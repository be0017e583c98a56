import base64
import binascii
import os
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from didvc.exceptions import KeyNotInitializedError, SignatureError
from didvc.logging import get_logger

logger = get_logger(__name__)

PRIVATE_KEY_FILENAME = "private.pem"
PUBLIC_KEY_FILENAME = "public.pem"
RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537


def load_public_key(public_key_pem: str) -> rsa.RSAPublicKey:
    """Parses an SPKI PEM string into an RSA public key.

    Raises:
        SignatureError: If the text is not a PEM encoded RSA public key.
    """
    try:
        public_key = serialization.load_pem_public_key(public_key_pem.encode("utf-8"))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SignatureError(f"Malformed public key PEM: {e}") from e
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise SignatureError(f"Expected an RSA public key, got {type(public_key).__name__}.")
    return public_key


class KeyManager:
    """
    Owns the single RSA key pair of a running issuer.

    The pair is loaded from `key_dir` when both PEM files are present and
    readable; otherwise a fresh pair is generated and written there. If the
    directory cannot be written the pair is kept in memory only and the
    issuer keeps running with a warning, so its DID document changes on the
    next restart.

    `initialize()` must complete before any call to `sign()`.
    """

    def __init__(self, key_dir: Union[str, Path]):
        self.key_dir = Path(key_dir).expanduser().resolve()
        self.private_key_path = self.key_dir / PRIVATE_KEY_FILENAME
        self.public_key_path = self.key_dir / PUBLIC_KEY_FILENAME
        self._private_key: Optional[rsa.RSAPrivateKey] = None
        self._public_key_pem: Optional[str] = None
        self.persistent = False

    @property
    def is_initialized(self) -> bool:
        return self._private_key is not None

    def initialize(self) -> None:
        """Loads the key pair from `key_dir`, or generates and persists a new one."""
        if self._load_keys_from_files():
            self.persistent = True
            logger.info(f"Keys loaded from {self.key_dir}")
            return

        logger.info("Generating new RSA key pair...")
        private_key = rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_KEY_SIZE)
        self._adopt(private_key)
        try:
            self._save_keys_to_files()
        except OSError as e:
            self.persistent = False
            logger.warning(f"Could not persist keys to {self.key_dir} ({e}). Using in-memory keys (not persisted).")
            return
        self.persistent = True
        logger.info(f"New key pair generated and saved to {self.key_dir}")

    def _adopt(self, private_key: rsa.RSAPrivateKey) -> None:
        self._private_key = private_key
        self._public_key_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("utf-8")

    def _load_keys_from_files(self) -> bool:
        if not (self.private_key_path.is_file() and self.public_key_path.is_file()):
            return False
        try:
            private_key = serialization.load_pem_private_key(
                self.private_key_path.read_bytes(), password=None
            )
            public_key_pem = self.public_key_path.read_text(encoding="utf-8")
            public_key = load_public_key(public_key_pem)
        except (OSError, ValueError, TypeError, UnsupportedAlgorithm, SignatureError) as e:
            logger.error(f"Error loading keys from {self.key_dir}: {e}")
            return False
        if not isinstance(private_key, rsa.RSAPrivateKey):
            logger.error(f"Key file {self.private_key_path} does not hold an RSA private key.")
            return False
        if private_key.public_key().public_numbers() != public_key.public_numbers():
            logger.error(f"{self.public_key_path} does not match {self.private_key_path}.")
            return False

        self._private_key = private_key
        # The stored public PEM is published as-is so the DID document stays byte-stable.
        self._public_key_pem = public_key_pem
        return True

    def _save_keys_to_files(self) -> None:
        private_key_pem = self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        self.key_dir.mkdir(parents=True, exist_ok=True)
        _write_file(self.private_key_path, private_key_pem, 0o600)
        _write_file(self.public_key_path, self._public_key_pem.encode("utf-8"), 0o644)

    @property
    def public_key_pem(self) -> str:
        """The public key as SPKI PEM text, as published in the DID document."""
        if self._public_key_pem is None:
            raise KeyNotInitializedError("Key pair not initialized")
        return self._public_key_pem

    def sign(self, payload: str) -> str:
        """Signs the UTF-8 bytes of `payload` with RSA-SHA256 (PKCS#1 v1.5), base64 encoded."""
        if self._private_key is None:
            raise KeyNotInitializedError("Key pair not initialized")
        signature = self._private_key.sign(payload.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
        return base64.b64encode(signature).decode("ascii")

    def verify(self, payload: str, signature: str, public_key_pem: Optional[str] = None) -> bool:
        """Checks a base64 RSA-SHA256 signature over `payload`.

        Defaults to this manager's own public key. A bad signature, in value or
        encoding, is a `False` result; a malformed `public_key_pem` raises
        `SignatureError`.
        """
        public_key = load_public_key(public_key_pem if public_key_pem is not None else self.public_key_pem)
        try:
            signature_bytes = base64.b64decode(signature, validate=True)
        except (binascii.Error, TypeError, ValueError):
            return False
        try:
            public_key.verify(signature_bytes, payload.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature:
            return False
        return True


def _write_file(path: Path, data: bytes, mode: int) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
    with os.fdopen(fd, "wb") as f:
        # os.open only applies the mode to new files, and the umask may have narrowed it.
        os.fchmod(f.fileno(), mode)
        f.write(data)
