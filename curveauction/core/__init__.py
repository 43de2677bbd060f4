"""Auction engine core: simulated chain, tokens, auctions and factory"""
