"""Local raster tools (no remote calls).

- transparency.py: background removal and alpha inspection
- operations.py: transform, adjust, composite, combine, batch
- layout.py: canvas arithmetic for combine
- colors.py: colour parsing
"""
