"""
Celestia: blockchain token transfers laid out as a navigable universe.

Groups transactions into capacity-bounded galaxies, assigns every galaxy and
solitary planet a stable 3D position, and keeps the layout current as new
transfers stream in from the upstream data service.
"""

__version__ = "0.1.0"
