"""Listings and contacts back-office backed by Firestore."""
