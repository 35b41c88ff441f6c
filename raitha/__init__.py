"""Negotiation chat service for the Raitha farmer-retailer marketplace."""
