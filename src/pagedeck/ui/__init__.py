"""
PageDeck - GTK Widgets

Main Components:
- PageGrid: Virtualized, scrollable grid of page cards
- PageCard: Single page thumbnail with rotate / delete controls
"""
