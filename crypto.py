import secrets
from hashlib import sha256
from typing import Callable
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.exceptions import InvalidTag
from constants import KEY_SIZE, NONCE_SIZE, TAG_SIZE, STREAM_NONCE, BYTE_ORDER
from errors import MalformedPayload, AuthenticationFailed
from params import ParameterSet

RandomSource = Callable[[int], bytes]

def as_bytes(data) -> bytes:
    """Copy a bytes-like object; ints and str raise TypeError"""
    return memoryview(data).tobytes()

# --------------------------
# Key derivation
# --------------------------
def derive_key(params: ParameterSet, byteorder: str = BYTE_ORDER) -> bytes:
    """
    Derive a 256-bit key with a single SHA-256 pass over the parameters'
    canonical encoding. Fields are fed as raw IEEE-754 / u32 bit patterns in
    fixed order; little-endian by default so keys are portable across hosts.
    byteorder="native" reproduces keys of host-order derivations.
    """
    return sha256(params.to_bytes(byteorder)).digest()[:KEY_SIZE]

# --------------------------
# Authenticated encryption with ChaCha20-Poly1305
# --------------------------
def generate_nonce(random_bytes: RandomSource = secrets.token_bytes) -> bytes:
    """Draw a fresh nonce; a failing or short random source is fatal"""
    try:
        nonce = random_bytes(NONCE_SIZE)
    except Exception as e:
        raise RuntimeError(f"Random source failed: {e}")
    if not isinstance(nonce, bytes) or len(nonce) != NONCE_SIZE:
        raise RuntimeError(f"Random source returned an invalid {NONCE_SIZE}-byte nonce")
    return nonce

def seal_bytes(key: bytes, plaintext: bytes, random_bytes: RandomSource = secrets.token_bytes) -> bytes:
    """Encrypt plaintext and return nonce || ciphertext || tag"""
    nonce = generate_nonce(random_bytes)
    cipher = ChaCha20Poly1305(key)
    return nonce + cipher.encrypt(nonce, as_bytes(plaintext), None)

def open_bytes(key: bytes, payload: bytes) -> bytes:
    """Verify and decrypt a payload produced by seal_bytes"""
    payload = as_bytes(payload)
    if len(payload) < NONCE_SIZE:
        raise MalformedPayload(
            f"Payload too short to contain nonce: {len(payload)} < {NONCE_SIZE} bytes")

    nonce, body = payload[:NONCE_SIZE], payload[NONCE_SIZE:]
    if len(body) < TAG_SIZE:
        raise AuthenticationFailed("Authentication failed: payload carries no complete tag")

    cipher = ChaCha20Poly1305(key)
    try:
        return cipher.decrypt(nonce, body, None)
    except InvalidTag:
        raise AuthenticationFailed("Authentication failed: wrong parameters or corrupted data")

# --------------------------
# Seeded stream cipher (no integrity, no nonce)
# --------------------------
def keystream(seed: bytes, length: int) -> bytes:
    """Deterministic pseudo-random bytes from a 32-byte seed (ChaCha20, fixed zero nonce)"""
    encryptor = Cipher(algorithms.ChaCha20(seed, STREAM_NONCE), mode=None).encryptor()
    return encryptor.update(bytes(length)) + encryptor.finalize()

def xor_stream(seed: bytes, data: bytes) -> bytes:
    """XOR data with the seed's keystream; applying it twice restores the input"""
    encryptor = Cipher(algorithms.ChaCha20(seed, STREAM_NONCE), mode=None).encryptor()
    return encryptor.update(as_bytes(data)) + encryptor.finalize()
