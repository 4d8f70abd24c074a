"""Failure taxonomy.

Every error here is raised and handled inside the component that detects it
and turned into a fallback action or a terminal, loggable outcome. None of
them escape the public entry points.
"""

from __future__ import annotations


class HumanTyperError(RuntimeError):
    """Base class for typing/sending failures."""


class NoFieldFound(HumanTyperError):
    """No input field matched the selectors or the fallback type."""


class MutationRejected(HumanTyperError):
    """The foreign field refused a direct text mutation."""


class PasteRejected(HumanTyperError):
    """Neither the paste action nor the long-press menu paste worked."""


class GestureDispatchFailed(HumanTyperError):
    """A tap or long-press gesture could not be dispatched."""


class NoSendControlFound(HumanTyperError):
    """No node looked like a send control."""


class AllSendStrategiesFailed(HumanTyperError):
    """Every strategy of the send cascade failed."""
