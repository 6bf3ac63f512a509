"""Stripe checkout webhook that upgrades Supabase profiles to Pro.

Receives checkout.session.completed events, verifies the Stripe signature
over the raw body, and marks the matching profile as Pro for one year.
"""
