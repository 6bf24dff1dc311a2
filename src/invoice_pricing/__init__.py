"""
Invoice Pricing Package

Line and document totals for sale and purchase invoices.
Resolves unit prices across base/secondary units, wholesale tiers,
per-line and global discounts, tax and credit balance.
"""

__version__ = "1.0.0"
