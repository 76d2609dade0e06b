"""
Exec module: run an external program as a request processing step.

An instance is configured once and then called by the host at each stage of
request processing. Every call is independent; the only state is the
read-only instance configuration, so one instance serves any number of
concurrent requests.

After a successful waited run the program's output is, by default, read as
``ntlm_auth --request-nt-key`` output and used to answer an MS-CHAPv2
request with MS-CHAP2-Success. Programs that print anything else must run in
an instance with ``ntlm_auth_response = no`` or every successful run fails.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from radius_exec.config.schema import ExecModuleConfig, validate_module_config
from radius_exec.exceptions import ConfigurationError, ProtocolError, ValidationError
from radius_exec.utils.logger import get_logger, logging_context
from radius_exec.utils.metrics import exec_invocations, exec_results

from ..constants import (
    ATTR_EXEC_PROGRAM,
    ATTR_EXEC_PROGRAM_WAIT,
    ATTR_REPLY_MESSAGE,
    EXEC_OUTPUT_BUFFER,
    EXTERNAL_CHECK_FAILED_MESSAGE,
    RADIUS_ACCESS_REJECT,
)
from ..radius.dictionary import packet_type_name
from ..radius.packet import RADIUSAttribute
from ..radius.request import Request
from .mschap import add_success_response
from .ntkey import parse_nt_key
from .program import ExecutionOutcome, ProgramRunner, exec_program
from .results import ModuleResult, map_exit_status
from .sources import SOURCE_NAMES, resolve_source

logger = get_logger("radius_exec.exec.module", component="exec")

STAGES = (
    "authenticate",
    "authorize",
    "preacct",
    "accounting",
    "pre_proxy",
    "post_proxy",
    "post_auth",
    "recv_coa",
    "send_coa",
)


class ExecModule:
    """One configured exec module instance"""

    def __init__(
        self, config: ExecModuleConfig, runner: ProgramRunner = exec_program
    ) -> None:
        self.config = config
        self.name = config.name or "exec"
        self.bare = config.bare
        self.packet_code = config.packet_code
        self._run = runner

        for option in ("input_pairs", "output_pairs"):
            value = getattr(config, option)
            if value is not None and value not in SOURCE_NAMES:
                logger.warning(
                    "Unknown attribute list name; it will never resolve",
                    event="exec.config.unknown_list",
                    instance=self.name,
                    option=option,
                    value=value,
                )

    @classmethod
    def instantiate(
        cls,
        options: Mapping[str, Any] | ExecModuleConfig,
        *,
        name: str | None = None,
        runner: ProgramRunner = exec_program,
    ) -> ExecModule:
        """Validate options and build an instance.

        Raises:
            ConfigurationError: when the options do not describe a usable
                instance; nothing is created in that case
        """
        if isinstance(options, ExecModuleConfig):
            config = options
        else:
            config = validate_module_config(options, name=name)
        module = cls(config, runner)
        logger.info(
            "Exec module instantiated",
            event="exec.module.instantiated",
            instance=module.name,
            bare=module.bare,
            wait=config.wait,
            packet_type=config.packet_type,
            timeout=config.timeout,
        )
        return module

    def __repr__(self) -> str:
        return f"ExecModule(name={self.name!r}, bare={self.bare})"

    # Stage entry points

    def authenticate(self, request: Request) -> ModuleResult:
        return self._call("authenticate", self._dispatch, request)

    def authorize(self, request: Request) -> ModuleResult:
        return self._call("authorize", self._dispatch, request)

    def preacct(self, request: Request) -> ModuleResult:
        return self._call("preacct", self._dispatch, request)

    def accounting(self, request: Request) -> ModuleResult:
        return self._call("accounting", self._accounting, request)

    def pre_proxy(self, request: Request) -> ModuleResult:
        return self._call("pre_proxy", self._dispatch, request)

    def post_proxy(self, request: Request) -> ModuleResult:
        return self._call("post_proxy", self._dispatch, request)

    def post_auth(self, request: Request) -> ModuleResult:
        return self._call("post_auth", self._post_auth, request)

    def recv_coa(self, request: Request) -> ModuleResult:
        return self._call("recv_coa", self._dispatch, request)

    def send_coa(self, request: Request) -> ModuleResult:
        return self._call("send_coa", self._dispatch, request)

    def dispatch(self, request: Request) -> ModuleResult:
        """Generic dispatch, the handler behind most stages"""
        return self._call("dispatch", self._dispatch, request)

    def stage(self, name: str) -> Callable[[Request], ModuleResult]:
        """Entry point for a stage name (see STAGES)"""
        if name not in STAGES:
            raise ValueError(f"Unknown stage {name!r}")
        return getattr(self, name)

    def _call(
        self,
        stage: str,
        handler: Callable[[Request], ModuleResult],
        request: Request,
    ) -> ModuleResult:
        exec_invocations.labels(module=self.name, stage=stage).inc()
        with logging_context(
            request_id=request.request_id, instance=self.name, stage=stage
        ):
            result = handler(request)
            logger.debug(
                "Exec module returned %s",
                result.name.lower(),
                event="exec.dispatch.result",
                result=result.name,
            )
        exec_results.labels(module=self.name, result=result.name).inc()
        return result

    # Handlers

    def _packet_type_matches(self, request: Request) -> bool:
        if self.packet_code == 0:
            return True
        return self.packet_code in request.packet_codes()

    def _run_program(
        self, program: str, request: Request, **kwargs: Any
    ) -> ExecutionOutcome:
        return self._run(
            program,
            request,
            timeout=self.config.timeout,
            shell_escape=self.config.shell_escape,
            output_limit=EXEC_OUTPUT_BUFFER,
            **kwargs,
        )

    def _dispatch(self, request: Request) -> ModuleResult:
        config = self.config
        if not config.program:
            logger.error(
                "We require a program to execute", event="exec.dispatch.no_program"
            )
            return ModuleResult.FAIL

        if not self._packet_type_matches(request):
            logger.debug(
                "Packet type is not %s. Not executing.",
                config.packet_type,
                event="exec.dispatch.packet_type_skipped",
                codes=[packet_type_name(c) for c in request.packet_codes()],
            )
            return ModuleResult.NOOP

        input_pairs = resolve_source(request, config.input_pairs)
        output_pairs = resolve_source(request, config.output_pairs)
        if input_pairs is None:
            logger.warning(
                "Input attribute list is not available for this request",
                event="exec.dispatch.input_missing",
                input_pairs=config.input_pairs,
            )
            return ModuleResult.NOOP
        if not len(input_pairs):
            logger.debug(
                "Input pairs are empty. No attributes will be passed to the script",
                event="exec.dispatch.input_empty",
            )

        outcome = self._run_program(
            config.program,
            request,
            wait=config.wait,
            input_pairs=input_pairs,
            want_pairs=config.wait,
        )
        if outcome.failed:
            logger.error(
                "External script failed",
                event="exec.dispatch.program_failed",
                status=outcome.status,
            )
            return ModuleResult.FAIL

        # Output attributes are moved to their destination or dropped.
        if outcome.pairs is not None:
            if output_pairs is not None:
                output_pairs.move_from(outcome.pairs)
            outcome.pairs.clear()

        if outcome.status == 0 and config.wait and config.ntlm_auth_response:
            if outcome.output and not self._answer_mschap(request, outcome.output):
                return ModuleResult.FAIL

        return map_exit_status(outcome.status)

    def _answer_mschap(self, request: Request, output: str) -> bool:
        """Turn NT_KEY output into MS-CHAP2-Success; False on any hard error"""
        try:
            nt_key = parse_nt_key(output)
        except ProtocolError as exc:
            logger.warning(
                str(exc), event="exec.ntkey.invalid", output_length=len(output)
            )
            return False
        try:
            add_success_response(request, nt_key)
        except ValidationError as exc:
            logger.error(str(exc), event="exec.mschap.invalid_request")
            return False
        return True

    def _find_marker(self, request: Request) -> tuple[RADIUSAttribute, bool] | None:
        """Exec-Program (no wait) or Exec-Program-Wait from the reply"""
        if request.reply is None:
            return None
        reply_attrs = request.reply.attributes
        attr = reply_attrs.find(ATTR_EXEC_PROGRAM)
        if attr is not None:
            return attr, False
        attr = reply_attrs.find(ATTR_EXEC_PROGRAM_WAIT)
        if attr is not None:
            return attr, True
        return None

    def _fallback(self, request: Request) -> ModuleResult:
        if not self.config.program:
            return ModuleResult.NOOP
        return self._dispatch(request)

    def _post_auth(self, request: Request) -> ModuleResult:
        marker = self._find_marker(request)
        if marker is None:
            return self._fallback(request)

        attr, wait = marker
        assert request.reply is not None
        reply = request.reply
        logger.debug(
            "Running program from %s",
            attr.name,
            event="exec.post_auth.marker",
            wait=wait,
        )
        outcome = self._run_program(
            attr.as_string(),
            request,
            wait=wait,
            input_pairs=request.packet.attributes,
            want_pairs=wait,
        )

        if outcome.pairs is not None:
            reply.attributes.move_from(outcome.pairs)

        if outcome.status < 0:
            reply.attributes.add_string(
                ATTR_REPLY_MESSAGE, EXTERNAL_CHECK_FAILED_MESSAGE
            )
            reply.code = RADIUS_ACCESS_REJECT
            logger.info(
                "Login incorrect (external check failed)",
                event="exec.post_auth.failed",
                status=outcome.status,
            )
            return ModuleResult.REJECT
        if outcome.status > 0:
            reply.code = RADIUS_ACCESS_REJECT
            logger.info(
                "Login incorrect (external check said so)",
                event="exec.post_auth.rejected",
                status=outcome.status,
            )
            return ModuleResult.REJECT
        return ModuleResult.OK

    def _accounting(self, request: Request) -> ModuleResult:
        # Only the bare instance looks for Exec-Program markers.
        if not self.bare:
            return self._dispatch(request)

        marker = self._find_marker(request)
        if marker is None:
            return self._fallback(request)

        attr, wait = marker
        outcome = self._run_program(
            attr.as_string(),
            request,
            wait=wait,
            input_pairs=request.packet.attributes,
            want_pairs=False,
        )
        if outcome.status != 0:
            logger.info(
                "Accounting program reported failure",
                event="exec.accounting.rejected",
                status=outcome.status,
            )
            return ModuleResult.REJECT
        return ModuleResult.OK

    # String expansion

    def xlat(self, request: Request, fmt: str) -> str:
        """Run ``fmt`` and return its output as a single line.

        Control characters in the output become spaces. Returns an empty
        string when the instance does not wait, the input list is missing,
        or the program does not exit 0.
        """
        with logging_context(request_id=request.request_id, instance=self.name):
            if not self.config.wait:
                logger.error(
                    "'wait' must be enabled to use exec xlat",
                    event="exec.xlat.no_wait",
                )
                return ""
            input_pairs = resolve_source(request, self.config.input_pairs)
            if input_pairs is None:
                logger.error(
                    "Failed to find input pairs for xlat", event="exec.xlat.no_input"
                )
                return ""
            logger.debug("Executing %s", fmt, event="exec.xlat.run")
            outcome = self._run_program(
                fmt, request, wait=True, input_pairs=input_pairs, want_pairs=False
            )
            if outcome.status != 0:
                logger.debug(
                    "xlat program result %d", outcome.status, event="exec.xlat.failed"
                )
                return ""
            return "".join(" " if ch < " " else ch for ch in outcome.output)


def build_modules(
    configs: Iterable[ExecModuleConfig], runner: ProgramRunner = exec_program
) -> dict[str, ExecModule]:
    """Instantiate configured instances keyed by name.

    Raises:
        ConfigurationError: two instances share a name
    """
    modules: dict[str, ExecModule] = {}
    for config in configs:
        module = ExecModule.instantiate(config, runner=runner)
        if module.name in modules:
            raise ConfigurationError(f"Duplicate exec instance {module.name!r}")
        modules[module.name] = module
    return modules


__all__ = ["STAGES", "ExecModule", "build_modules"]
