"""Petfeeder gateway: sessions, provider login, and media relay."""
