from .sinks import CsvSink, JsonlSink, ResultSinks, result_row

__all__ = ["CsvSink", "JsonlSink", "ResultSinks", "result_row"]
