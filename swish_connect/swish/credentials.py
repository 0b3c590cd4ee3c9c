"""Merchant certificate handling for mutual TLS against Swish."""
from __future__ import annotations

import os
import ssl
import tempfile
import threading
from pathlib import Path
from typing import Optional, Union

from ..errors import CredentialError

Passphrase = Union[str, bytes, None]


def _wipe(buf: bytearray) -> None:
    buf[:] = b"\x00" * len(buf)
    del buf[:]


def _scrub_file(path: Path) -> None:
    with open(path, "r+b") as f:
        f.write(b"\x00" * path.stat().st_size)
        f.flush()
        os.fsync(f.fileno())


class CredentialStore:
    """
    Opaque holder of the merchant certificate, private key and passphrase.

    The secret material never leaves this object except through
    `build_tls_context()`. The context is built once, cached, and the
    raw buffers are zeroed afterwards, so the store is read-only from then on
    and can be shared between concurrent requests.
    """

    def __init__(
        self,
        cert: bytes,
        key: bytes,
        passphrase: Passphrase = None,
        ca: Optional[bytes] = None,
    ):
        if not cert:
            raise CredentialError("certificate is empty")
        if not key:
            raise CredentialError("private key is empty")
        self._cert = bytearray(cert)
        self._key = bytearray(key)
        self._passphrase = bytearray(passphrase.encode("utf-8") if isinstance(passphrase, str) else (passphrase or b""))
        self._ca = bytearray(ca) if ca else None
        self._context: Optional[ssl.SSLContext] = None
        self._lock = threading.Lock()

    @classmethod
    def from_files(
        cls,
        cert_path: Union[str, Path],
        key_path: Union[str, Path],
        passphrase: Passphrase = None,
        ca_path: Union[str, Path, None] = None,
    ) -> "CredentialStore":
        try:
            cert = Path(cert_path).read_bytes()
            key = Path(key_path).read_bytes()
            ca = Path(ca_path).read_bytes() if ca_path else None
        except OSError as e:
            raise CredentialError(f"cannot read merchant credentials: {e}") from e
        return cls(cert=cert, key=key, passphrase=passphrase, ca=ca)

    def build_tls_context(self) -> ssl.SSLContext:
        with self._lock:
            if self._context is None:
                self._context = self._load_context()
                for buf in (self._cert, self._key, self._passphrase, self._ca):
                    if buf is not None:
                        _wipe(buf)
            return self._context

    def _load_context(self) -> ssl.SSLContext:
        try:
            if self._ca:
                # Only the Swish root CA is trusted when one is supplied
                context = ssl.create_default_context(
                    ssl.Purpose.SERVER_AUTH, cadata=bytes(self._ca).decode("ascii")
                )
            else:
                context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        except (ssl.SSLError, ValueError) as e:
            raise CredentialError(f"invalid CA certificate: {e}") from e

        # ssl only loads client certificates from files. They live in a 0700
        # temp dir for the duration of load_cert_chain; the key file is
        # overwritten with zeros before the dir is removed.
        with tempfile.TemporaryDirectory(prefix="swish-pki-") as tmp:
            cert_file = Path(tmp) / "client.pem"
            key_file = Path(tmp) / "client.key"
            cert_file.write_bytes(bytes(self._cert))
            key_file.write_bytes(bytes(self._key))
            try:
                context.load_cert_chain(
                    certfile=str(cert_file),
                    keyfile=str(key_file),
                    password=bytes(self._passphrase),
                )
            except (ssl.SSLError, ValueError, TypeError) as e:
                raise CredentialError(f"cannot load certificate/key pair: {e}") from e
            finally:
                _scrub_file(key_file)
        return context

    def __repr__(self) -> str:
        return f"<CredentialStore loaded={self._context is not None}>"

    def __reduce__(self):
        raise TypeError("CredentialStore cannot be serialized")
