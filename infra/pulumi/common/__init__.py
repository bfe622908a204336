"""Shared configuration and AWS helpers."""
