"""
SSH Key — The server's RSA identity used by git+ssh for private upstreams.

The private key is a PEM-encoded PKCS#1 ("BEGIN RSA PRIVATE KEY") file
with mode 0600. It is generated on first use when missing and reused
afterwards. The public half is handed out in authorized_keys format so
the operator can add it as a deploy key on GitHub.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

logger = logging.getLogger(__name__)

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


def read_private_key(path: Union[str, Path]) -> rsa.RSAPrivateKey:
    """Load an unencrypted RSA private key from a PEM file."""
    data = Path(path).read_bytes()
    key = serialization.load_pem_private_key(data, password=None)
    if not isinstance(key, rsa.RSAPrivateKey):
        raise ValueError(f"{path} does not contain an RSA private key")
    return key


def create_private_key(path: Union[str, Path], key_size: int = KEY_SIZE) -> rsa.RSAPrivateKey:
    """
    Generate a new RSA key and write it to ``path`` as PKCS#1 PEM, mode 0600.

    Raises FileExistsError if ``path`` appeared in the meantime.
    """
    path = Path(path)
    key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_size)
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )

    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(pem)

    return key


def authorized_key(key: rsa.RSAPrivateKey) -> str:
    """Public half of ``key`` as an authorized_keys line."""
    public = key.public_key().public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    )
    return public.decode("ascii") + "\n"


class SSHKeyStore:
    """
    Lazily materialized keypair at a fixed path.

    Creation is serialized; whoever loses the race re-reads the file the
    winner wrote.
    """

    def __init__(self, private_key_path: Union[str, Path], key_size: int = KEY_SIZE):
        self.private_key_path = Path(private_key_path)
        self.key_size = key_size
        self._lock = threading.Lock()

    def public_key(self) -> str:
        with self._lock:
            try:
                key = read_private_key(self.private_key_path)
            except FileNotFoundError:
                key = self._create()
        return authorized_key(key)

    def _create(self) -> rsa.RSAPrivateKey:
        logger.info(f"[ssh] writing a new RSA key to {self.private_key_path}")
        try:
            return create_private_key(self.private_key_path, self.key_size)
        except FileExistsError:
            return read_private_key(self.private_key_path)
