"""
Patient-related exceptions.
"""


class PatientLookupError(Exception):
    """Exception raised when patient lookup or creation fails."""
    pass
