"""Check strategies: HTTP polling and service stats change detection."""

from .change_detector import ChangeDetector, DetectedFailure
from .http import HttpCheck, accept_body
from .stats import ServiceStatsCheck, WatchRule
