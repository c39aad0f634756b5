"""Graph analysis over note collections.

Clustering, relationship scoring/classification, emerging-concept detection,
the cheap keyword linkers and tag/query expansion. Everything works on
in-memory nodes supplied by the caller and returns plain values; nothing here
writes edges.
"""
