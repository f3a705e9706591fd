from . import exceptions
from .cli import main
from .workflow import WorkflowDriver
from .util import order_pair

__all__ = ["WorkflowDriver", "exceptions", "order_pair", "main"]
