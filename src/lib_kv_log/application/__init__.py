"""Ports the composition root depends on."""
