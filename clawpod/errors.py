"""Error taxonomy for the bootstrap run.

Every fatal kind derives from ``BootstrapError`` and names the step that failed
plus, where one exists, a literal command the operator can run next. The CLI
turns any of them into a non-zero exit.
"""

from __future__ import annotations


class BootstrapError(RuntimeError):
    """Base class for fatal bootstrap failures.

    Attributes:
        step: Human-readable name of the step that failed.
        remediation: Optional command or hint to resolve the failure.
    """

    step: str = "bootstrap"

    def __init__(
        self,
        message: str,
        *,
        step: str | None = None,
        remediation: str | None = None,
    ) -> None:
        super().__init__(message)
        if step is not None:
            self.step = step
        self.remediation = remediation


class NoRuntimeFound(BootstrapError):
    """No supported compose backend is installed on the host."""

    step = "runtime detection"


class UnsafeExecutionContext(BootstrapError):
    """The run was started with superuser privileges."""

    step = "preflight"


class SecretProvisioningFailed(BootstrapError):
    """No entropy source produced a usable gateway token."""

    step = "secrets"


class BuildFailed(BootstrapError):
    """The gateway image build exited non-zero."""

    step = "image build"


class ServiceStartFailed(BootstrapError):
    """``compose up`` for one or more services exited non-zero."""

    step = "service start"


class DependencyTimedOut(BootstrapError):
    """The dependency never answered its readiness probe within the budget."""

    step = "dependency readiness"


class ArtifactPullFailed(BootstrapError):
    """The model download failed or did not leave the model available."""

    step = "model download"


class StartupVerificationWarning(UserWarning):
    """The gateway container did not report a running status after start.

    Diagnostic only: it is logged, never raised.
    """

    def __init__(self, message: str, *, remediation: str | None = None) -> None:
        super().__init__(message)
        self.remediation = remediation


__all__ = [
    "BootstrapError",
    "NoRuntimeFound",
    "UnsafeExecutionContext",
    "SecretProvisioningFailed",
    "BuildFailed",
    "ServiceStartFailed",
    "DependencyTimedOut",
    "ArtifactPullFailed",
    "StartupVerificationWarning",
]
