"""External integrations: verification authority."""
