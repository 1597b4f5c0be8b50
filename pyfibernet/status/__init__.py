from pyfibernet.status.cache import StatusCache, StatusCacheEntry
from pyfibernet.status.fallback import AIFallbackClassifier
from pyfibernet.status.messages import detect_service, format_status_message
from pyfibernet.status.models import (RawState, RawStatusResult, ServiceStatus, StatusState, TrackedService,
                                      derive_state)
from pyfibernet.status.orchestrator import StatusOrchestrator
from pyfibernet.status.scheduler import StatusScheduler
from pyfibernet.status.source import StatusSourceClient, classify_indicator
