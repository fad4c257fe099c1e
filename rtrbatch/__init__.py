from .api import RTRClient
from .executor import RTRBatchExecutor
from .api_response_formats import SessionToken, DeviceQueryResponse, BatchInitResponse
from .executor_utils.response_models import ExecutionPolicy, HostCommandResult, TargetOutcome
from .errors import (
    RTRError,
    AuthenticationFailed,
    DiscoveryFailed,
    DiscoveryError,
    SessionInitError,
    TransportError,
    EnvelopeDecodeError,
)
