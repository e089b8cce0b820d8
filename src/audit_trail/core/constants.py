"""Audit-wide constants.

This module defines constants used throughout the package
to avoid magic numbers and ensure consistency.
"""

# Table naming defaults
DEFAULT_TABLE_PREFIX = ""
DEFAULT_TABLE_SUFFIX = "_audit"

# Pagination defaults
DEFAULT_PAGE_SIZE = 50

# Access scopes
VIEW_SCOPE = "view"

# Audit column lengths
MAX_TYPE_LENGTH = 10
MAX_OBJECT_ID_LENGTH = 255
MAX_DISCRIMINATOR_LENGTH = 255
TRANSACTION_HASH_LENGTH = 40
MAX_BLAME_LENGTH = 255
MAX_FIREWALL_LENGTH = 100
MAX_IPV6_LENGTH = 45
