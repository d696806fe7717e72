"""
Inkwell - publishing platform core.

Users, publications, stories, comments, stars and tags, with the
membership and invitation workflows that guard publication content.
"""

__version__ = "0.1.0"
