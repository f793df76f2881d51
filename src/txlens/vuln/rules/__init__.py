"""Built-in trace heuristics."""

from .access_control import AccessControlRule, SENSITIVE_KEYWORDS
from .dangerous_delegatecall import DangerousDelegatecallRule
from .reentrancy import ReentrancyRule
from .unchecked_call import UncheckedCallRule

__all__ = [
    'AccessControlRule',
    'DangerousDelegatecallRule',
    'ReentrancyRule',
    'UncheckedCallRule',
    'SENSITIVE_KEYWORDS',
]
