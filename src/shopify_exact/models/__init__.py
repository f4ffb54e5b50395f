"""Pydantic models for Shopify payloads and ExactOnline documents."""
