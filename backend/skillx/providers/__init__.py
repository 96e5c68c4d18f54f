"""Clients for the recommendations backend collaborator."""
