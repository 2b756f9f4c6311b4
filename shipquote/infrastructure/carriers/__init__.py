"""Carrier adapters. One subpackage per carrier."""
