import os
import json
import struct
from dataclasses import dataclass
from typing import Dict, Any, Tuple

from constants import PARAMS_VERSION, BYTE_ORDER, BYTE_ORDERS, U32_MAX
from errors import ParameterFormatError

# --------------------------
# Float bit patterns
# --------------------------
def float_bits(value: float) -> int:
    """Return the 64-bit IEEE-754 pattern of value as an unsigned integer"""
    return struct.unpack('<Q', struct.pack('<d', value))[0]

def float_to_hex(value: float) -> str:
    """Encode a float as the 16-digit hex of its bit pattern (lossless, keeps NaN payloads and -0.0)"""
    return struct.pack('>d', value).hex()

def float_from_hex(text: str) -> float:
    """Decode a float written by float_to_hex"""
    try:
        raw = bytes.fromhex(text)
    except (TypeError, ValueError) as e:
        raise ParameterFormatError(f"Invalid float bit pattern {text!r}: {e}")
    if len(raw) != 8:
        raise ParameterFormatError(f"Float bit pattern must be 16 hex digits, got {text!r}")
    return struct.unpack('>d', raw)[0]

def struct_prefix(byteorder: str = BYTE_ORDER) -> str:
    """Map a byte order name to its struct prefix"""
    try:
        return BYTE_ORDERS[byteorder]
    except KeyError:
        raise ValueError(f"Unknown byte order {byteorder!r}, expected one of {sorted(BYTE_ORDERS)}")

# --------------------------
# Spatial value types
# --------------------------
@dataclass(frozen=True, eq=False)
class Point:
    """A location in 3D space."""
    x: float
    y: float
    z: float

    def __post_init__(self):
        for name in ("x", "y", "z"):
            object.__setattr__(self, name, float(getattr(self, name)))

    def bits(self) -> Tuple[int, int, int]:
        return float_bits(self.x), float_bits(self.y), float_bits(self.z)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.bits() == other.bits()

    def __hash__(self):
        return hash((type(self).__name__,) + self.bits())

    def to_dict(self) -> Dict[str, str]:
        return {"x": float_to_hex(self.x), "y": float_to_hex(self.y), "z": float_to_hex(self.z)}

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]):
        if not isinstance(obj, dict):
            raise ParameterFormatError(f"{cls.__name__} record must be an object")
        try:
            return cls(*(float_from_hex(obj[name]) for name in ("x", "y", "z")))
        except KeyError as e:
            raise ParameterFormatError(f"{cls.__name__} record missing field {e}")


@dataclass(frozen=True, eq=False)
class Axis(Point):
    """A direction in 3D space. Kept distinct from Point so the two cannot be swapped."""


@dataclass(frozen=True, eq=False)
class ParameterSet:
    """
    Immutable tuple that seeds key derivation.
    Floats are taken as-is (NaN, inf and -0.0 included); keeping them
    meaningful is the caller's responsibility.
    """
    point: Point
    axis: Axis
    iterations: int
    strength: float

    def __post_init__(self):
        if type(self.point) is not Point:
            raise TypeError(f"point must be a Point, got {type(self.point).__name__}")
        if type(self.axis) is not Axis:
            raise TypeError(f"axis must be an Axis, got {type(self.axis).__name__}")
        iterations = self.iterations
        if not isinstance(iterations, int) or isinstance(iterations, bool):
            raise TypeError(f"iterations must be an integer, got {iterations!r}")
        if not 0 <= iterations <= U32_MAX:
            raise ValueError(f"iterations must fit an unsigned 32-bit integer, got {iterations}")
        object.__setattr__(self, "iterations", iterations)
        object.__setattr__(self, "strength", float(self.strength))

    def to_bytes(self, byteorder: str = BYTE_ORDER) -> bytes:
        """Canonical encoding: point xyz, axis xyz (f64), iterations (u32), strength (f64)"""
        return struct.pack(
            struct_prefix(byteorder) + '6dId',
            self.point.x, self.point.y, self.point.z,
            self.axis.x, self.axis.y, self.axis.z,
            self.iterations,
            self.strength,
        )

    def __eq__(self, other):
        if not isinstance(other, ParameterSet):
            return NotImplemented
        return self.to_bytes() == other.to_bytes()

    def __hash__(self):
        return hash(self.to_bytes())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": PARAMS_VERSION,
            "point": self.point.to_dict(),
            "axis": self.axis.to_dict(),
            "iterations": self.iterations,
            "strength": float_to_hex(self.strength),
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "ParameterSet":
        if not isinstance(obj, dict):
            raise ParameterFormatError("Parameter record must be an object")
        version = obj.get("version")
        if version != PARAMS_VERSION:
            raise ParameterFormatError(f"Unsupported parameter record version: {version!r}")
        try:
            point = Point.from_dict(obj["point"])
            axis = Axis.from_dict(obj["axis"])
            iterations = obj["iterations"]
            strength = float_from_hex(obj["strength"])
        except KeyError as e:
            raise ParameterFormatError(f"Parameter record missing field {e}")
        if not isinstance(iterations, int) or isinstance(iterations, bool):
            raise ParameterFormatError(f"iterations must be an integer, got {iterations!r}")
        try:
            return cls(point, axis, iterations, strength)
        except ValueError as e:
            raise ParameterFormatError(str(e))

    def dumps(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def loads(cls, text: str) -> "ParameterSet":
        try:
            obj = json.loads(text)
        except ValueError as e:
            raise ParameterFormatError(f"Invalid parameter JSON: {e}")
        return cls.from_dict(obj)

# --------------------------
# Parameter files
# --------------------------
def save_params(params: ParameterSet, path: str) -> None:
    """Write parameter file atomically with owner-only permissions"""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = path + ".tmp"
    with open(tmp_path, "w") as f:
        f.write(params.dumps() + "\n")
    os.chmod(tmp_path, 0o600)
    os.replace(tmp_path, path)

def load_params(path: str) -> ParameterSet:
    """Read a parameter file written by save_params"""
    with open(path, "r") as f:
        return ParameterSet.loads(f.read())
