"""Hexagonal ports: abstractions the core depends on."""
