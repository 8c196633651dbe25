"""Core types and helpers shared by every certfetch layer."""
