import json
import secrets
from typing import Dict, Any

from constants import MODE_AEAD, MODE_STREAM, MODES, BYTE_ORDER, BYTE_ORDERS
from crypto import RandomSource, derive_key, seal_bytes, open_bytes, xor_stream
from errors import CipherModeError, ParameterFormatError
from params import ParameterSet, struct_prefix

# --------------------------
# Cipher engine
# --------------------------
class SpatialCipher:
    """
    Seals and opens byte payloads under a key derived from a ParameterSet.

    mode="aead" (default): ChaCha20-Poly1305 with a fresh random nonce per
    seal; payload is nonce || ciphertext || tag.
    mode="stream": XOR with a keystream seeded by the derived key. No nonce,
    no integrity; two messages under the same parameters share a keystream.
    Kept for parity testing only.

    The engine holds no mutable state, so one instance can serve concurrent
    callers. Changing parameters means building a new engine.
    """

    def __init__(self, params: ParameterSet, mode: str = MODE_AEAD,
                 random_bytes: RandomSource = secrets.token_bytes,
                 byteorder: str = BYTE_ORDER):
        if not isinstance(params, ParameterSet):
            raise TypeError(f"params must be a ParameterSet, got {type(params).__name__}")
        if mode not in MODES:
            raise CipherModeError(f"Unknown cipher mode {mode!r}, expected one of {list(MODES)}")
        struct_prefix(byteorder)
        self._params = params
        self._mode = mode
        self._byteorder = byteorder
        self._random_bytes = random_bytes
        self._key = derive_key(params, byteorder)

    @property
    def params(self) -> ParameterSet:
        return self._params

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def byteorder(self) -> str:
        return self._byteorder

    def __repr__(self):
        # params are key material and stay out of the repr
        return f"SpatialCipher(mode={self._mode!r}, byteorder={self._byteorder!r})"

    def _require_aead(self, operation: str) -> None:
        if self._mode != MODE_AEAD:
            raise CipherModeError(f"{operation}() requires mode {MODE_AEAD!r}, engine is {self._mode!r}")

    def seal(self, plaintext: bytes) -> bytes:
        """Encrypt and authenticate plaintext; output differs on every call"""
        self._require_aead("seal")
        return seal_bytes(self._key, plaintext, self._random_bytes)

    def open(self, payload: bytes) -> bytes:
        """
        Verify and decrypt a sealed payload.
        Raises MalformedPayload if shorter than a nonce, AuthenticationFailed
        on a bad tag (tampering or mismatched parameters).
        """
        self._require_aead("open")
        return open_bytes(self._key, payload)

    def encrypt(self, data: bytes) -> bytes:
        """Seal in aead mode, XOR with the seeded keystream in stream mode"""
        if self._mode == MODE_STREAM:
            return xor_stream(self._key, data)
        return self.seal(data)

    def decrypt(self, data: bytes) -> bytes:
        if self._mode == MODE_STREAM:
            return xor_stream(self._key, data)
        return self.open(data)

    # --------------------------
    # Serialization
    # --------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self._mode,
            "byteorder": self._byteorder,
            "params": self._params.to_dict(),
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any],
                  random_bytes: RandomSource = secrets.token_bytes) -> "SpatialCipher":
        if not isinstance(obj, dict) or "params" not in obj:
            raise ParameterFormatError("Engine record must be an object with a 'params' field")
        params = ParameterSet.from_dict(obj["params"])
        mode = obj.get("mode", MODE_AEAD)
        if not isinstance(mode, str) or mode not in MODES:
            raise ParameterFormatError(f"Unknown cipher mode in engine record: {mode!r}")
        byteorder = obj.get("byteorder", BYTE_ORDER)
        if not isinstance(byteorder, str) or byteorder not in BYTE_ORDERS:
            raise ParameterFormatError(f"Unknown byte order in engine record: {byteorder!r}")
        return cls(params, mode, random_bytes, byteorder)

    def dumps(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def loads(cls, text: str, random_bytes: RandomSource = secrets.token_bytes) -> "SpatialCipher":
        try:
            obj = json.loads(text)
        except ValueError as e:
            raise ParameterFormatError(f"Invalid engine JSON: {e}")
        return cls.from_dict(obj, random_bytes)
