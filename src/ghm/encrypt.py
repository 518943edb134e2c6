"""
Secret encryption for the GitHub Actions secrets API.

GitHub hands out a repository public key and only accepts secrets
encrypted against it. Modern keys are raw 32-byte Curve25519 keys
(libsodium sealed box); older or self-hosted setups may return a DER
encoded RSA key, which gets RSA-OAEP with SHA-256.
"""

from __future__ import annotations

import base64
import binascii
import logging

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from nacl import public

from .errors import EncryptionError, InvalidKey, UnsupportedKeyFormat
from .models import RepositoryPublicKey

logger = logging.getLogger("ghm.encrypt")

SEALED_BOX_KEY_SIZE = 32


def _decode_key(key_material: str) -> bytes:
    """Decode base64 key material.

    Raises:
        InvalidKey: If the material is empty or not valid base64.
    """
    if not key_material:
        raise InvalidKey("Public key is empty")
    try:
        raw = base64.b64decode(key_material, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidKey(f"Public key is not valid base64: {exc}") from exc
    if not raw:
        raise InvalidKey("Public key is empty")
    return raw


def _load_rsa_key(der: bytes) -> rsa.RSAPublicKey:
    """Parse DER public key bytes.

    ``load_der_public_key`` takes a SubjectPublicKeyInfo container and
    falls back to a bare PKCS#1 RSAPublicKey.

    Raises:
        UnsupportedKeyFormat: If the bytes do not parse or the key is not RSA.
    """
    try:
        key = serialization.load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise UnsupportedKeyFormat(f"Failed to parse RSA public key: {exc}") from exc

    if not isinstance(key, rsa.RSAPublicKey):
        raise UnsupportedKeyFormat("Public key is not an RSA public key")
    return key


def _seal(plaintext: bytes, raw_key: bytes) -> bytes:
    box = public.SealedBox(public.PublicKey(raw_key))
    return box.encrypt(plaintext)


def _encrypt_rsa(plaintext: bytes, key: rsa.RSAPublicKey) -> bytes:
    try:
        return key.encrypt(
            plaintext,
            padding.OAEP(
                mgf=padding.MGF1(algorithm=hashes.SHA256()),
                algorithm=hashes.SHA256(),
                label=None,
            ),
        )
    except ValueError as exc:
        raise EncryptionError(f"Failed to encrypt secret using RSA: {exc}") from exc


def encrypt_secret(plaintext: str, public_key: RepositoryPublicKey) -> str:
    """Encrypt a secret value for a repository.

    Args:
        plaintext: Secret value.
        public_key: The repository's current public key.

    Returns:
        Base64-encoded ciphertext, ready for the ``encrypted_value`` field.

    Raises:
        InvalidKey: Key material is empty or not base64.
        UnsupportedKeyFormat: Key is neither 32 bytes nor a DER RSA key.
        EncryptionError: The value is not valid UTF-8 text or RSA
            encryption failed (e.g. plaintext too long).
    """
    raw = _decode_key(public_key.key)
    try:
        data = plaintext.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncryptionError(f"Secret value is not encodable as UTF-8: {exc}") from exc

    if len(raw) == SEALED_BOX_KEY_SIZE:
        logger.debug("Sealing secret with key %s", public_key.key_id)
        ciphertext = _seal(data, raw)
    else:
        rsa_key = _load_rsa_key(raw)
        logger.debug(
            "Encrypting secret with %d-bit RSA key %s",
            rsa_key.key_size, public_key.key_id,
        )
        ciphertext = _encrypt_rsa(data, rsa_key)

    return base64.b64encode(ciphertext).decode("utf-8")
