class StorageError(Exception):
    """A read or write against the record store failed; the pass was rolled back"""
