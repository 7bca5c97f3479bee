"""
Tests for SpatialCipher: the authenticated and stream variants, and engine
serialization.
"""

import json
import pytest

from constants import MODE_AEAD, MODE_STREAM
from engine import SpatialCipher
from errors import MalformedPayload, AuthenticationFailed, CipherModeError, ParameterFormatError
from params import Point, Axis, ParameterSet


class TestAuthenticated:
    """Default (aead) engine."""

    def test_hello_world_round_trip(self, params):
        engine = SpatialCipher(params)
        payload = engine.seal(b"Hello, World!")
        assert engine.open(payload) == b"Hello, World!"

    def test_seal_twice_differs_but_opens_same(self, params):
        engine = SpatialCipher(params)
        first = engine.seal(b"Hello, World!")
        second = engine.seal(b"Hello, World!")
        assert first != second
        assert first[:12] != second[:12]
        assert engine.open(first) == engine.open(second) == b"Hello, World!"

    @pytest.mark.parametrize("message", [b"", b"x", bytes(range(256)) * 40])
    def test_round_trip_sizes(self, params, message):
        engine = SpatialCipher(params)
        assert engine.open(engine.seal(message)) == message

    def test_separate_engines_same_params_interoperate(self, params):
        other = ParameterSet(Point(1.0, 2.0, 3.0), Axis(0.0, 1.0, 0.0), 10, 0.1)
        payload = SpatialCipher(params).seal(b"shared")
        assert SpatialCipher(other).open(payload) == b"shared"

    def test_every_bit_flip_detected(self, params):
        engine = SpatialCipher(params)
        payload = engine.seal(b"tamper")
        for index in range(len(payload)):
            for bit in range(8):
                tampered = bytearray(payload)
                tampered[index] ^= 1 << bit
                with pytest.raises(AuthenticationFailed):
                    engine.open(bytes(tampered))

    def test_truncated_payload_rejected(self, params):
        engine = SpatialCipher(params)
        payload = engine.seal(b"truncate me")
        with pytest.raises(AuthenticationFailed):
            engine.open(payload[:-1])

    @pytest.mark.parametrize("length", [0, 1, 11])
    def test_short_payload_malformed(self, params, length):
        with pytest.raises(MalformedPayload):
            SpatialCipher(params).open(b"\x01" * length)

    def test_mismatched_params_fail(self, params):
        payload = SpatialCipher(params).seal(b"secret")
        other = ParameterSet(Point(1.0, 2.0, 3.0), Axis(0.0, 1.0, 0.0), 11, 0.1)
        with pytest.raises(AuthenticationFailed):
            SpatialCipher(other).open(payload)

    def test_injected_random_source(self, params, counting_random):
        engine = SpatialCipher(params, random_bytes=counting_random)
        first, second = engine.seal(b"m"), engine.seal(b"m")
        assert first[:12] == (1).to_bytes(12, "big")
        assert second[:12] == (2).to_bytes(12, "big")

    def test_encrypt_dispatches_to_seal(self, params):
        engine = SpatialCipher(params)
        payload = engine.encrypt(b"data")
        assert len(payload) == 12 + 4 + 16
        assert engine.decrypt(payload) == b"data"

    def test_repr_hides_key(self, params):
        engine = SpatialCipher(params)
        assert engine._key.hex() not in repr(engine)
        assert "Point" not in repr(engine)
        assert "strength" not in repr(engine)

    def test_seal_rejects_int(self, params):
        engine = SpatialCipher(params)
        with pytest.raises(TypeError):
            engine.seal(5)


class TestStreamVariant:
    """Unauthenticated stream engine."""

    def test_round_trip(self, params):
        engine = SpatialCipher(params, mode=MODE_STREAM)
        ciphertext = engine.encrypt(b"Test Data")
        assert len(ciphertext) == len(b"Test Data")
        assert ciphertext != b"Test Data"
        assert engine.decrypt(ciphertext) == b"Test Data"

    def test_deterministic(self, params):
        engine = SpatialCipher(params, mode=MODE_STREAM)
        assert engine.encrypt(b"Test Data") == engine.encrypt(b"Test Data")

    def test_two_time_pad_weakness(self, params):
        engine = SpatialCipher(params, mode=MODE_STREAM)
        a, b = b"attack at dawn", b"retreat at six"
        xored = bytes(x ^ y for x, y in zip(engine.encrypt(a), engine.encrypt(b)))
        assert xored == bytes(x ^ y for x, y in zip(a, b))

    def test_any_input_decrypts(self, params):
        engine = SpatialCipher(params, mode=MODE_STREAM)
        assert len(engine.decrypt(b"\xff" * 5)) == 5
        assert engine.decrypt(b"") == b""

    def test_seal_not_available(self, params):
        engine = SpatialCipher(params, mode=MODE_STREAM)
        with pytest.raises(CipherModeError):
            engine.seal(b"x")
        with pytest.raises(CipherModeError):
            engine.open(b"\x00" * 40)


class TestConstruction:
    """Engine construction and serialization."""

    def test_unknown_mode(self, params):
        with pytest.raises(CipherModeError):
            SpatialCipher(params, mode="ecb")

    def test_unknown_byte_order(self, params):
        with pytest.raises(ValueError):
            SpatialCipher(params, byteorder="big")

    def test_requires_parameter_set(self):
        with pytest.raises(TypeError):
            SpatialCipher((1.0, 2.0, 3.0))

    def test_round_trip_record(self, params):
        engine = SpatialCipher(params, mode=MODE_STREAM)
        restored = SpatialCipher.loads(engine.dumps())
        assert restored.mode == MODE_STREAM
        assert restored.params == params
        assert restored.decrypt(engine.encrypt(b"Test Data")) == b"Test Data"

    def test_record_defaults_to_aead(self, params):
        record = {"params": params.to_dict()}
        engine = SpatialCipher.from_dict(record)
        assert engine.mode == MODE_AEAD
        assert engine.open(SpatialCipher(params).seal(b"x")) == b"x"

    def test_record_without_params(self):
        with pytest.raises(ParameterFormatError):
            SpatialCipher.from_dict({"mode": "aead"})

    @pytest.mark.parametrize("field, value", [
        ("mode", "ecb"),
        ("mode", 1),
        ("byteorder", "big"),
        ("byteorder", ["x"]),
    ])
    def test_record_with_bad_field(self, params, field, value):
        record = SpatialCipher(params).to_dict()
        record[field] = value
        with pytest.raises(ParameterFormatError):
            SpatialCipher.from_dict(record)

    def test_bad_json(self):
        with pytest.raises(ParameterFormatError):
            SpatialCipher.loads("[")

    def test_record_is_plain_json(self, params):
        record = json.loads(SpatialCipher(params).dumps())
        assert record["byteorder"] == "little"
        assert record["params"]["strength"] == "3fb999999999999a"
