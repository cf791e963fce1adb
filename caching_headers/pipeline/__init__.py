"""Request pipeline: classify, decide, capture, tag, flush.

Public API:
    HeaderSink                 - pending headers, no-op once sent
    BodyCapture                - per-request output buffer
    PageClassifier             - request -> PageContext
    RequestPipeline            - ordered stages for one response
    CachingHeadersMiddleware   - Starlette middleware running the pipeline
"""

from caching_headers.pipeline.classifier import PageClassifier
from caching_headers.pipeline.middleware import CachingHeadersMiddleware
from caching_headers.pipeline.sinks import BodyCapture, HeaderSink
from caching_headers.pipeline.stages import RequestPipeline

__all__ = [
    "BodyCapture",
    "CachingHeadersMiddleware",
    "HeaderSink",
    "PageClassifier",
    "RequestPipeline",
]
