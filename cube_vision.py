"""
Root entry point – delegates to the cube_vision package.

Usage:
    python cube_vision.py classify images/rot_5.png
    python cube_vision.py classify images/rot_5.png --json --show
"""

from cube_vision.main import main

if __name__ == "__main__":
    main()
