"""auth/ -- Authentication and authorization core for Warden.

Layer rule: auth/ imports only stdlib + third-party libraries (and core/ for
settings). It does NOT import from api/ or users/. api/ and users/ import from
auth/, not the other way around.
"""
