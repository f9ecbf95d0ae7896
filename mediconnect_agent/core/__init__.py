"""
Core domain layer: enums, exceptions and models.
"""
