"""Application layer: service orchestrators over the core and boundary layers."""
