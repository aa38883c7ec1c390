"""MongoDB query layer.

Callers normally go through `Registry` -> `MongoDBClient.collection()` and
chain clauses on the returned `Collection`.
"""

from fluentmongo.libs.mongodb.client import MongoDBClient, Registry
from fluentmongo.libs.mongodb.collection import Collection
from fluentmongo.libs.mongodb.decoder import decode_many, decode_one
from fluentmongo.libs.mongodb.marshaler import marshal_for_insert, marshal_for_update

__all__ = [
    "Collection",
    "MongoDBClient",
    "Registry",
    "decode_many",
    "decode_one",
    "marshal_for_insert",
    "marshal_for_update",
]
