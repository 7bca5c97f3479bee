# --------------------------
# Constants
# --------------------------
KEY_SIZE = 32  # ChaCha20-Poly1305 / SHA-256 output
NONCE_SIZE = 12  # 96-bit AEAD nonce
TAG_SIZE = 16  # Poly1305 tag
STREAM_NONCE = bytes(16)  # fixed counter+nonce block for the seeded keystream
MODE_AEAD = "aead"
MODE_STREAM = "stream"
MODES = (MODE_AEAD, MODE_STREAM)
PARAMS_VERSION = "1"
BYTE_ORDER = "little"  # derivation byte order; "native" reproduces host-order keys
BYTE_ORDERS = {"little": "<", "native": "="}
U32_MAX = 2**32 - 1
