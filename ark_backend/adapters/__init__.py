"""Collaborator adapters (asset store, document store)."""
