class SchemaError(ValueError):
    """Input table does not have the expected columns or survey codes."""


class StrataError(ValueError):
    """Cleaned data is not exactly one case and one control per stratum."""
