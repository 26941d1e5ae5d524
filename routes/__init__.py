"""
HTTP routes: explorer proxies per network and Lit-signed transactions.
"""
