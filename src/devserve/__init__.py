"""Devserve - static file serving with filesystem access control for dev servers."""
