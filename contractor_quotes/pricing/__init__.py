"""
Pricing stages for quote line items.

Pure Python math over Decimal. No database, no HTTP.
Given a product snapshot, a measurement and the customer's selections,
produce the quantity, unit price and line total for a quote line.
"""
