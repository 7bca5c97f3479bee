import os
import sys
import argparse
from typing import Dict, Any, Optional

from params import Point, Axis, ParameterSet, save_params, load_params
from engine import SpatialCipher
from errors import SpatialCipherError, AuthenticationFailed
from config import load_config, audit_log, get_current_user
from constants import MODES, MODE_AEAD

# --------------------------
# Helpers
# --------------------------
def read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()

def write_bytes_atomic(path: str, data: bytes) -> None:
    """Write output via a temp file so a failed run never leaves a partial file"""
    tmp_path = path + ".tmp"
    with open(tmp_path, "wb") as f:
        f.write(data)
    os.replace(tmp_path, path)

def build_engine(cfg: Dict[str, Any], args: argparse.Namespace, mode: Optional[str] = None) -> SpatialCipher:
    params_path = args.params or cfg["params_path"]
    if not os.path.exists(params_path):
        raise FileNotFoundError(f"Parameter file not found at {params_path} (create one with 'params')")
    mode = mode or getattr(args, "mode", None) or cfg["mode"]
    return SpatialCipher(load_params(params_path), mode=mode, byteorder=cfg["byteorder"])

# --------------------------
# CLI Commands
# --------------------------
def cmd_params(args: argparse.Namespace) -> None:
    """Write a parameter file from command-line values"""
    cfg = load_config()
    out_path = args.output or cfg["params_path"]
    params = ParameterSet(Point(*args.point), Axis(*args.axis), args.iterations, args.strength)
    save_params(params, out_path)
    audit_log(cfg, f"PARAMS_WRITTEN by {get_current_user()} path={out_path}")
    print(f"✓ Parameters written to: {out_path}")

def cmd_seal(args: argparse.Namespace) -> None:
    """Seal a file with the authenticated cipher"""
    cfg = load_config()
    engine = build_engine(cfg, args, MODE_AEAD)
    payload = engine.seal(read_bytes(args.input))
    write_bytes_atomic(args.output, payload)
    audit_log(cfg, f"SEAL by {get_current_user()} in={args.input} out={args.output} bytes={len(payload)}")
    print(f"✓ Sealed {args.input} -> {args.output} ({len(payload)} bytes)")

def cmd_open(args: argparse.Namespace) -> None:
    """Open a sealed file; nothing is written unless the tag verifies"""
    cfg = load_config()
    engine = build_engine(cfg, args, MODE_AEAD)
    try:
        plaintext = engine.open(read_bytes(args.input))
    except SpatialCipherError as e:
        print(f"✗ Open failed: {e}")
        if isinstance(e, AuthenticationFailed):
            print("  Wrong parameters or corrupted payload")
        audit_log(cfg, f"OPEN_FAILED by {get_current_user()} in={args.input} reason={type(e).__name__}")
        sys.exit(1)
    write_bytes_atomic(args.output, plaintext)
    audit_log(cfg, f"OPEN_SUCCESS by {get_current_user()} in={args.input} out={args.output}")
    print(f"✓ Opened {args.input} -> {args.output} ({len(plaintext)} bytes)")

def cmd_encrypt(args: argparse.Namespace) -> None:
    """Encrypt with the configured mode (aead or stream)"""
    cfg = load_config()
    engine = build_engine(cfg, args)
    data = engine.encrypt(read_bytes(args.input))
    write_bytes_atomic(args.output, data)
    audit_log(cfg, f"ENCRYPT by {get_current_user()} mode={engine.mode} in={args.input} out={args.output}")
    print(f"✓ Encrypted ({engine.mode}) {args.input} -> {args.output}")

def cmd_decrypt(args: argparse.Namespace) -> None:
    """Decrypt with the configured mode (aead or stream)"""
    cfg = load_config()
    engine = build_engine(cfg, args)
    try:
        data = engine.decrypt(read_bytes(args.input))
    except SpatialCipherError as e:
        print(f"✗ Decryption failed: {e}")
        audit_log(cfg, f"DECRYPT_FAILED by {get_current_user()} mode={engine.mode} in={args.input} reason={type(e).__name__}")
        sys.exit(1)
    write_bytes_atomic(args.output, data)
    audit_log(cfg, f"DECRYPT by {get_current_user()} mode={engine.mode} in={args.input} out={args.output}")
    print(f"✓ Decrypted ({engine.mode}) {args.input} -> {args.output}")

def cmd_demo(args: argparse.Namespace) -> None:
    """Seal and open a sample message with fixed parameters"""
    params = ParameterSet(Point(1.0, 2.0, 3.0), Axis(0.0, 1.0, 0.0), 10, 0.1)
    engine = SpatialCipher(params)

    original = b"Hello, World!"
    print(f"Original Data: {original.decode()}")

    sealed = engine.seal(original)
    print(f"Encrypted Data: {sealed.hex()}")

    opened = engine.open(sealed)
    print(f"Decrypted Data: {opened.decode()}")

    if opened != original:
        raise RuntimeError("Decrypted data does not match the original")
    print("✓ Round trip OK")

def main():
    parser = argparse.ArgumentParser(
        description="Spatial cipher CLI - encrypt data under keys derived from 3D parameters",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest="cmd", help="Available commands")

    # Params command
    parser_params = subparsers.add_parser("params", help="Write a parameter file")
    parser_params.add_argument("--point", nargs=3, type=float, required=True, metavar=("X", "Y", "Z"))
    parser_params.add_argument("--axis", nargs=3, type=float, required=True, metavar=("X", "Y", "Z"))
    parser_params.add_argument("--iterations", type=int, required=True)
    parser_params.add_argument("--strength", type=float, required=True)
    parser_params.add_argument("-o", "--output", help="Parameter file path (default: $SPATIAL_PARAMS)")

    # File commands
    for name, help_text in (("seal", "Seal a file (authenticated)"),
                            ("open", "Open a sealed file"),
                            ("encrypt", "Encrypt a file with the configured mode"),
                            ("decrypt", "Decrypt a file with the configured mode")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("input", help="Input file")
        sub.add_argument("output", help="Output file")
        sub.add_argument("--params", help="Parameter file path (default: $SPATIAL_PARAMS)")
        if name in ("encrypt", "decrypt"):
            sub.add_argument("--mode", choices=MODES, help="Cipher mode (default: $SPATIAL_MODE)")

    # Demo command
    subparsers.add_parser("demo", help="Run the basic seal/open example")

    args = parser.parse_args()

    if not args.cmd:
        parser.print_help()
        sys.exit(1)

    commands = {
        "params": cmd_params,
        "seal": cmd_seal,
        "open": cmd_open,
        "encrypt": cmd_encrypt,
        "decrypt": cmd_decrypt,
        "demo": cmd_demo,
    }

    try:
        commands[args.cmd](args)
    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user")
        sys.exit(130)
    except (SpatialCipherError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
