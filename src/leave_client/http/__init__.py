"""HTTP transport layer.

Note: ``ApiClient`` lives in ``http.client`` and is NOT re-exported here
to avoid a circular import (http → client → auth.coordinator → http).
Import directly: ``from leave_client.http.client import ApiClient``.
"""
