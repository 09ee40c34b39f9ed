"""
Chain, signer, price and persistence services.
"""
