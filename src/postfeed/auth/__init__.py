"""Authentication and authorization.

Three layers, each usable on its own:
1. tokens   → issue/verify signed, time-bounded identity tokens
2. context  → turn a raw bearer header into an AuthContext (never raises)
3. guards   → require an authenticated caller, require the resource owner
"""
