"""Audit table naming."""

import re


class TableNamer:
    """Derives audit table names from live table names.

    An audit table lives in the same schema as its entity table and is
    named "{prefix}{table}{suffix}".
    """

    def __init__(self, prefix: str = "", suffix: str = "_audit") -> None:
        self.prefix = prefix
        self.suffix = suffix

    def audit_table_name(self, table_name: str, schema: str | None = None) -> str:
        """Return the audit table name, schema-qualified when a schema is given."""
        qualifier = f"{schema}." if schema else ""
        return f"{qualifier}{self.prefix}{table_name}{self.suffix}"

    def from_live_name(self, live_name: str, table_name: str | None = None) -> str:
        """Rewrite a possibly schema-qualified live table name.

        Args:
            live_name: Name as reported by the store, e.g. "billing.invoice"
            table_name: Unqualified table name to match, defaults to the
                last component of live_name

        Returns:
            The audit table name with the schema qualifier preserved
        """
        table_name = table_name or live_name.rsplit(".", 1)[-1]
        pattern = rf"^([^.]+\.)?({re.escape(table_name)})$"
        return re.sub(
            pattern,
            lambda m: f"{m.group(1) or ''}{self.prefix}{m.group(2)}{self.suffix}",
            live_name,
        )

    @staticmethod
    def split(qualified_name: str) -> tuple[str | None, str]:
        """Split "schema.table" into (schema, table)."""
        if "." in qualified_name:
            schema, name = qualified_name.split(".", 1)
            return schema, name
        return None, qualified_name
