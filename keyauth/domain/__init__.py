"""Domain Layer: key and application records, permission tiers and the ports
(Abstract Base Classes) the core depends on.
"""
