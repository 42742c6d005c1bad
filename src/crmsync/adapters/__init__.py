"""Concrete record store adapters and their shared plumbing."""
