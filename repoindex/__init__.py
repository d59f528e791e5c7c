from .indexing import delete_repository_index, index_public_repository, index_repository
from .retrieval import delete_repository_from_vector_store, query_repository

__all__ = [
    "delete_repository_from_vector_store",
    "delete_repository_index",
    "index_public_repository",
    "index_repository",
    "query_repository",
]
