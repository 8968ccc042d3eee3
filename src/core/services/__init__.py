"""Servicios del Core que orquestan adaptadores (cola de subida)."""
