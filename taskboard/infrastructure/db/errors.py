"""Pool lifecycle errors (misuse of init_pool/get_pool, not query failures)."""


class DatabasePoolError(Exception):
    pass


class PoolAlreadyInitializedError(DatabasePoolError):
    pass


class PoolNotInitializedError(DatabasePoolError):
    pass
