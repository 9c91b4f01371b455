"""Leaderboards backed by an order-statistic AVL tree, with binary saving and JSON request handling."""

__version__ = "0.1.0"