# helperbars/core/templating/helpers/crypto.py
"""
JOSE (JWS/JWE compact serialization) and AES helpers.

Keys are JSON Web Keys given as JSON text. Signing and encryption use the
public half of asymmetric keys where only the public half is needed.
"""
import base64
import binascii
import json
import os
from typing import Any, Callable, Dict

import structlog
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from jwcrypto import jwe, jwk, jws
from jwcrypto.common import JWException

from helperbars.exceptions import CryptoError

log = structlog.get_logger(__name__)

AES_KEY_SIZE = 32
AES_BLOCK_SIZE = 16


def _load_key(key: str) -> jwk.JWK:
    try:
        return jwk.JWK.from_json(key)
    except (JWException, ValueError, TypeError) as e:
        log.debug("jose_key_parse_failed", error_type=type(e).__name__)
        raise CryptoError(f"unable to parse key: {e}") from e


def _public_half(key: jwk.JWK) -> jwk.JWK:
    # symmetric keys have no public half.
    if key.get("kty") == "oct":
        return key
    return jwk.JWK.from_json(key.export_public())


def jose_sign(payload: str, key: str, alg: str) -> str:
    signing_key = _load_key(key)
    try:
        token = jws.JWS(payload.encode("utf-8"))
        token.add_signature(signing_key, alg=alg, protected=json.dumps({"alg": alg}))
        return token.serialize(compact=True)
    except (JWException, ValueError, TypeError) as e:
        raise CryptoError(f"unable to sign: {e}") from e


def jose_verify_signature(payload: str, key: str) -> str:
    """Verify a compact JWS and return its payload text."""
    verify_key = _load_key(key)
    try:
        token = jws.JWS()
        token.deserialize(payload)
        token.verify(_public_half(verify_key))
        return token.payload.decode("utf-8")
    except (JWException, ValueError, TypeError) as e:
        raise CryptoError(f"unable to verify signature: {e}") from e


def jose_encrypt(payload: str, key: str, enc: str, alg: str) -> str:
    recipient = _load_key(key)
    try:
        token = jwe.JWE(payload.encode("utf-8"), protected=json.dumps({"alg": alg, "enc": enc}))
        token.add_recipient(_public_half(recipient))
        return token.serialize(compact=True)
    except (JWException, ValueError, TypeError) as e:
        raise CryptoError(f"unable to encrypt: {e}") from e


def jose_decrypt(payload: str, key: str) -> str:
    private_key = _load_key(key)
    try:
        token = jwe.JWE()
        token.deserialize(payload, key=private_key)
        return token.payload.decode("utf-8")
    except (JWException, ValueError, TypeError) as e:
        raise CryptoError(f"unable to decrypt: {e}") from e


def _aes_key(password: str) -> bytes:
    # password bytes, truncated or zero-padded to 32 bytes.
    raw = password.encode("utf-8")[:AES_KEY_SIZE]
    return raw + b"\x00" * (AES_KEY_SIZE - len(raw))


def encrypt_aes(password: str, plaintext: str) -> str:
    """AES-256-CBC with PKCS7 padding; the random IV prefixes the base64 output."""
    padder = padding.PKCS7(AES_BLOCK_SIZE * 8).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    iv = os.urandom(AES_BLOCK_SIZE)
    encryptor = Cipher(algorithms.AES(_aes_key(password)), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(iv + ciphertext).decode("ascii")


def decrypt_aes(password: str, encoded: str) -> str:
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CryptoError(f"illegal base64 data: {e}") from e
    if len(data) < AES_BLOCK_SIZE or len(data) % AES_BLOCK_SIZE:
        raise CryptoError("ciphertext is not a whole number of blocks")
    iv, ciphertext = data[:AES_BLOCK_SIZE], data[AES_BLOCK_SIZE:]
    decryptor = Cipher(algorithms.AES(_aes_key(password)), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    try:
        unpadder = padding.PKCS7(AES_BLOCK_SIZE * 8).unpadder()
        return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
    except (ValueError, UnicodeError) as e:
        raise CryptoError(f"unable to decrypt: {e}") from e


HELPERS: Dict[str, Callable[..., Any]] = {
    "joseSign": jose_sign,
    "joseVerifySignature": jose_verify_signature,
    "joseEncrypt": jose_encrypt,
    "joseDecrypt": jose_decrypt,
    "encryptAES": encrypt_aes,
    "decryptAES": decrypt_aes,
}
