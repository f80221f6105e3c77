"""
The VIEW layer holds the Qt widgets (main window, 3D viewport).
"""
