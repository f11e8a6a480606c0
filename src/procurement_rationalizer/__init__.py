"""procurement-rationalizer — Merge messy procurement spreadsheets into one clean dataset."""

__version__ = "0.2.0"

OUTPUT_BASENAME = "rationalized_procurement_data"
