# kvgateway
# Routes key/value operations to the shards of a range-partitioned backend
# and aggregates reads across all of them.

__version__ = "1.0.0"
