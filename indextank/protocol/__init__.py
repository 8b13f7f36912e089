"""
Protocol Module - Wire Format and Error Handling

Query serialization, response decoding, batch correlation, error
classification and request timeouts.
"""

from indextank.protocol.query import Query, RequestedAttachments
from indextank.protocol.classifier import Operation, classify_response, classify_transport_error
from indextank.protocol.decoder import decode_search_result
from indextank.protocol.batch import correlate_delete_results, correlate_index_results
from indextank.protocol.timeout import run_with_timeout
from indextank.protocol.transport import Transport

__all__ = [
    "Query",
    "RequestedAttachments",
    "Operation",
    "classify_response",
    "classify_transport_error",
    "decode_search_result",
    "correlate_delete_results",
    "correlate_index_results",
    "run_with_timeout",
    "Transport",
]
