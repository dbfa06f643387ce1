"""Identifier quoting for SQL text.

SQLite cannot bind table or column names as parameters, so every name that
ends up inside a statement goes through :func:`quote_identifier`. Values are
always bound with ``?`` placeholders.
"""


def quote_identifier(identifier: str) -> str:
    """Quote a table or column name for interpolation into SQL text.

    Always wraps in double quotes and doubles any embedded double quote,
    so reserved words, spaces and punctuation (``No.``) are handled the
    same way as plain names.
    """
    return '"' + str(identifier).replace('"', '""') + '"'


def quote_identifiers(identifiers) -> str:
    """Quote each name and join with ``", "`` for column lists."""
    return ", ".join(quote_identifier(name) for name in identifiers)
