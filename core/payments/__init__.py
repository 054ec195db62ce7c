"""
Stripe-backed checkout for business ads.
"""
