import abc
import logging
from typing import Optional

import requests

from pyfibernet.status.models import RawState, RawStatusResult

log = logging.getLogger(__name__)


class StatusProviderBase(abc.ABC):
    """Common plumbing for outage status providers.

    Providers answer with a RawStatusResult and never raise: an unreachable
    or undecidable provider answers RawState.UNKNOWN.
    """
    label = "provider"

    def __init__(self, timeout: float = 10, poolmaxsize: int = 10,
                 session: Optional[requests.Session] = None):
        super().__init__()
        self.timeout = timeout
        self.poolmaxsize = poolmaxsize
        self.session = session if session is not None else self._build_session()

    def _build_session(self) -> requests.Session:
        session = requests.Session()
        if self.poolmaxsize > 0:
            # noinspection PyUnresolvedReferences
            adapter = requests.adapters.HTTPAdapter(pool_maxsize=self.poolmaxsize)
            session.mount('https://', adapter)
        return session

    @abc.abstractmethod
    def available(self) -> bool:
        raise NotImplementedError

    def close_session(self):
        self.session.close()

    def _result(self, state: RawState, indicator_text: str = "", report_signal: float = 0.0) -> RawStatusResult:
        return RawStatusResult(state=state, indicator_text=indicator_text, report_signal=report_signal,
                               source_label=self.label)

    def _unknown(self, service_key: str, reason: str) -> RawStatusResult:
        log.debug(f" -- {self.label}: {service_key} unknown ({reason})")
        return self._result(RawState.UNKNOWN, reason)
