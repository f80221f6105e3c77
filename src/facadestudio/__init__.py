"""
Facade Studio
=============
Procedural modular facade generator with lighting presets and a
high-resolution still export that leaves the interactive viewport untouched.
"""

__version__ = "0.1.0"
