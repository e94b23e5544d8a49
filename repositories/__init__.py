from repositories.entries import EntryRepository, SqlEntryRepository

__all__ = [
    "EntryRepository",
    "SqlEntryRepository",
]
