#!/usr/bin/env python3
"""
Butano collision export

Uso:
    python run_export.py <archivo.tmx> [salida.hh] [preview.png]

Ejemplo:
    python run_export.py maps/level1.tmx
    python run_export.py maps/level1.tmx include/level1.hh level1_preview.png

Requisitos:
    pip install numpy pillow zstandard
"""

import sys

from butano_export.__main__ import main


if __name__ == "__main__":
    sys.exit(main())
