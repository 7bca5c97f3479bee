#!/usr/bin/env python3
"""
spatialcipher.py — CLI tool for parameter-derived symmetric encryption
  Commands:
    params              - write a parameter file (point, axis, iterations, strength)
    seal / open         - authenticated encryption of a file
    encrypt / decrypt   - mode-dispatching encryption (aead or stream)
    demo                - seal and open a sample message
"""

from cli import main

if __name__ == "__main__":
    main()
