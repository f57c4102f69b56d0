from cdc_fanout.sources.base import ChangeBatch, ChangeSource
from cdc_fanout.sources.jsonl import JsonLinesChangeSource

__all__ = ["ChangeBatch", "ChangeSource", "JsonLinesChangeSource"]
