from .event_stream import EventStream
from .json_parse import parse_tool_input
from .overflow import is_overflow_exception, is_overflow_text

__all__ = ["EventStream", "parse_tool_input", "is_overflow_exception", "is_overflow_text"]
