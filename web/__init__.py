"""Web adapter for the CHIP-8 interpreter."""
