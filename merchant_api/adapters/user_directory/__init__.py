"""User directory adapters.

Email existence lookups go through ``AbstractUserDirectory`` so the hosted
auth backend can be replaced (or faked in tests) without touching routes.
"""
