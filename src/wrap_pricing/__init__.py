"""
Vehicle Graphics Pricing Package

A quote configurator for vinyl wrap jobs.
Resolves a price from Vehicle → Coverage → Options → Print → Lamination → White Print.
"""

__version__ = "1.0.0"
