"""
The VIEW layer draws patch grids. It reads grids only and never changes the
model.
"""
