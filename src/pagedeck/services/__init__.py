"""
PageDeck - Services Package

Clients for the external PDF processing service.
"""
