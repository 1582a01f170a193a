"""Authentication, profiles and capability checks."""
