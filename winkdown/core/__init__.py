"""Core editing engine: document model, tree primitives, grid and services."""
