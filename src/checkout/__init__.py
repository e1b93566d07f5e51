"""Bookstore checkout and payment-settlement service."""
