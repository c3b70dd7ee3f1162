"""Page rendering engine: element model, component resolution, CSS and HTML passes."""
