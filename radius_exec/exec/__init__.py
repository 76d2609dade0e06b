"""
External program dispatch

- Attribute source resolution and program execution
- NT_KEY parsing and MS-CHAP2-Success generation
- Exit status to module result mapping
"""

from .module import STAGES, ExecModule, build_modules
from .mschap import add_success_response, auth_response
from .ntkey import parse_nt_key
from .program import ExecutionOutcome, exec_program, parse_output_pairs
from .results import RESULT_CODES, ModuleResult, map_exit_status
from .sources import SOURCE_NAMES, resolve_source

__all__ = [
    "ExecModule",
    "ExecutionOutcome",
    "ModuleResult",
    "RESULT_CODES",
    "SOURCE_NAMES",
    "STAGES",
    "add_success_response",
    "auth_response",
    "build_modules",
    "exec_program",
    "map_exit_status",
    "parse_nt_key",
    "parse_output_pairs",
    "resolve_source",
]
