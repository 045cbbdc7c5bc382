"""Stripe payment intent lifecycle service."""
