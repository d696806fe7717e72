"""
Inkwell kernel: persistence models, audit events, identity and permissions.
"""
