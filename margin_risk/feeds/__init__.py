"""Account feeds."""
from .http import HttpAccountFeed
from .jsonl import JsonLinesAccountFeed, parse_record

__all__ = ["HttpAccountFeed", "JsonLinesAccountFeed", "parse_record"]
