from abc import ABC, abstractmethod
from typing import Any, Optional

from ..workflow.compiler import default_definition
from ..workflow.models import WorkflowDefinition


class BaseAgent(ABC):
    """ Abstract base class for the deterministic workflow agents. """

    # name recorded in DecisionTrace.rules_applied when the agent runs
    rule: str = ""

    def __init__(self, definition: Optional[WorkflowDefinition] = None):
        self.definition = definition or default_definition()

    @abstractmethod
    def execute(self, *args: Any, **kwargs: Any) -> Any:
        """
        Run the agent's logic. Must be implemented by subclasses; no I/O.
        """
        pass
