"""
Bundled configuration resources (``default.yaml``) for propscale.
"""
