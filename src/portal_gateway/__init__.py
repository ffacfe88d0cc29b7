"""Backend gateway for the portal web applications.

Two components carry the failure handling: :class:`~portal_gateway.secrets.SecretCache`
hides vault latency and outages behind a TTL cache, and
:class:`~portal_gateway.upstream.ResilientUpstreamClient` wraps outbound calls with
timeouts, bounded retries and a stable error taxonomy.
"""

from .secrets import SecretCache, SecretFetchError, SecretsConfig
from .upstream import ErrorKind, ResilientUpstreamClient, UpstreamCallSpec, UpstreamResult

__version__ = "0.1.0"

__all__ = [
    "ErrorKind",
    "ResilientUpstreamClient",
    "SecretCache",
    "SecretFetchError",
    "SecretsConfig",
    "UpstreamCallSpec",
    "UpstreamResult",
    "__version__",
]
