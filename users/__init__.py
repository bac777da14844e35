"""users/ -- User record persistence and account management for Warden.

Layer rule: users/ imports from auth/ (models, errors, policy, hasher
contract) and never from api/. api/ imports from users/, not the other way
around.
"""
