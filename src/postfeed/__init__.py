"""Postfeed — content-feed backend.

Users sign up, log in with a signed bearer token, and publish posts they
own. Anyone can page through the feed; only a post's creator can edit or
delete it.
"""

__version__ = "0.1.0"
