"""Animated Lorenz attractor viewer (PySide6 + PyVista)."""
