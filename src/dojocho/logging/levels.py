"""
HUMAN logging level -- readable progress of a pack acquisition.

Custom level between INFO (20) and WARNING (30). It does not indicate
severity; it marks the handful of events a user wants to see while
``dojo add`` runs (fetching, extracting, installing, wiring).

Hierarchy:
    debug  (10) -> command lines, HTTP status codes, archive listings
    info   (20) -> internal operations (config loaded, staging created)
    human  (25) -> * what the pipeline is doing right now
    warn   (30) -> non-fatal problems (registry unreachable, agent skipped)
    error  (40) -> errors
"""

import logging

import structlog

# Custom level: between INFO (20) and WARNING (30)
HUMAN = 25
logging.addLevelName(HUMAN, "HUMAN")


def _human_method(self, message, *args, **kwargs):
    if self.isEnabledFor(HUMAN):
        self._log(HUMAN, message, args, **kwargs)


# structlog.stdlib.BoundLogger.log(HUMAN, ...) maps 25 to "human" and then
# calls getattr(stdlib_logger, "human")
logging.Logger.human = _human_method

# structlog looks levels up by number in BoundLogger.log()
try:
    structlog.stdlib.LEVEL_TO_NAME[HUMAN] = "human"
except AttributeError:
    pass
