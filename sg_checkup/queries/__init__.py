"""SQL queries run against the imported account snapshot."""
