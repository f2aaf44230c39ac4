"""Query layer: fluent builder, SQL synthesis, row decoding and the gateway."""

from sqlspine.query.builder import QueryBuilder
from sqlspine.query.conventions import ConventionResolver
from sqlspine.query.decoder import ScanKind, decode_rows, scan_kind
from sqlspine.query.gateway import Database, get_default_database, set_default_database, table
from sqlspine.query.records import column, record_meta
from sqlspine.query.synthesizer import QueryState, Statement
from sqlspine.query.values import Raw

__all__ = [
    "QueryBuilder",
    "QueryState",
    "Statement",
    "Raw",
    "Database",
    "set_default_database",
    "get_default_database",
    "table",
    "column",
    "record_meta",
    "ConventionResolver",
    "ScanKind",
    "scan_kind",
    "decode_rows",
]
