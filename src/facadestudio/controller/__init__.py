"""
The CONTROLLER layer turns model state into a rendered scene.
It owns the PyVista plotter: scene assembly, the render surface and export.
"""
