"""
HTTP API exposing the universe layout to the rendering layer.
"""
